"""ORM model for uploaded project documents."""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, String, Text, Uuid

from complykit.models.base import AuditableMixin, Base


class Document(AuditableMixin, Base):
    """
    One uploaded file. `extracted_text` caches parser output; when empty the
    content aggregator extracts on demand from storage.
    """

    __tablename__ = "documents"

    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    file_name = Column(String(1024), nullable=False)
    storage_path = Column(String(2048), nullable=False)
    content_type = Column(String(255), nullable=False)
    file_size_bytes = Column(BigInteger, nullable=False, default=0)
    category = Column(String(64), nullable=True)
    extracted_text = Column(Text, nullable=True)
    page_count = Column(Integer, nullable=True)
    text_extracted_at = Column(DateTime(timezone=True), nullable=True)
