"""Closed enumerations shared by the ORM models and API schemas."""

import enum


class ComplianceStatus(str, enum.Enum):
    NOT_ASSESSED = "NotAssessed"
    COMPLIANT = "Compliant"
    PARTIALLY_COMPLIANT = "PartiallyCompliant"
    NON_COMPLIANT = "NonCompliant"
    NOT_APPLICABLE = "NotApplicable"


class RiskLevel(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        """Ordinal used for "highest risk first" ordering."""
        return _RISK_RANK[self]


_RISK_RANK = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}


class FindingWorkflowStatus(str, enum.Enum):
    OPEN = "Open"
    IN_PROGRESS = "InProgress"
    RESOLVED = "Resolved"
    ACCEPTED = "Accepted"
    FALSE_POSITIVE = "FalsePositive"


class EvidenceType(str, enum.Enum):
    SUPPORTING = "Supporting"
    CONTRADICTING = "Contradicting"
    CONTEXTUAL = "Contextual"


class ProjectRole(str, enum.Enum):
    OWNER = "Owner"
    CONTRIBUTOR = "Contributor"
    VIEWER = "Viewer"


class OrganizationRole(str, enum.Enum):
    OWNER = "Owner"
    ADMIN = "Admin"
    MEMBER = "Member"
    VIEWER = "Viewer"


class ProjectStatus(str, enum.Enum):
    DRAFT = "Draft"
    ACTIVE = "Active"
    ARCHIVED = "Archived"
    COMPLETED = "Completed"


class TaskStatus(str, enum.Enum):
    OPEN = "Open"
    IN_PROGRESS = "InProgress"
    BLOCKED = "Blocked"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class TaskPriority(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class ActivityType(str, enum.Enum):
    """Closed set of audit-trail activity types; `code` is the stable numeric identifier."""

    WORKSPACE_CREATED = "WorkspaceCreated"
    WORKSPACE_UPDATED = "WorkspaceUpdated"
    WORKSPACE_DELETED = "WorkspaceDeleted"
    WORKSPACE_SETTINGS_CHANGED = "WorkspaceSettingsChanged"

    USER_INVITED = "UserInvited"
    USER_JOINED = "UserJoined"
    USER_REMOVED = "UserRemoved"
    USER_ROLE_CHANGED = "UserRoleChanged"
    USER_PROFILE_UPDATED = "UserProfileUpdated"

    PROJECT_CREATED = "ProjectCreated"
    PROJECT_UPDATED = "ProjectUpdated"
    PROJECT_DELETED = "ProjectDeleted"
    PROJECT_ARCHIVED = "ProjectArchived"
    PROJECT_RESTORED = "ProjectRestored"
    PROJECT_MEMBER_ADDED = "ProjectMemberAdded"
    PROJECT_MEMBER_REMOVED = "ProjectMemberRemoved"
    PROJECT_MEMBER_ROLE_CHANGED = "ProjectMemberRoleChanged"

    DOCUMENT_UPLOADED = "DocumentUploaded"
    DOCUMENT_UPDATED = "DocumentUpdated"
    DOCUMENT_DELETED = "DocumentDeleted"
    DOCUMENT_DOWNLOADED = "DocumentDownloaded"
    DOCUMENT_VERSION_UPLOADED = "DocumentVersionUploaded"

    FRAMEWORK_ADDED = "FrameworkAdded"
    FRAMEWORK_REMOVED = "FrameworkRemoved"

    COMPLIANCE_CHECK_STARTED = "ComplianceCheckStarted"
    COMPLIANCE_CHECK_COMPLETED = "ComplianceCheckCompleted"
    COMPLIANCE_CHECK_FAILED = "ComplianceCheckFailed"

    FINDING_CREATED = "FindingCreated"
    FINDING_UPDATED = "FindingUpdated"
    FINDING_STATUS_CHANGED = "FindingStatusChanged"
    FINDING_ASSIGNED = "FindingAssigned"
    FINDING_COMMENT_ADDED = "FindingCommentAdded"
    FINDING_DELETED = "FindingDeleted"

    TASK_CREATED = "TaskCreated"
    TASK_UPDATED = "TaskUpdated"
    TASK_COMPLETED = "TaskCompleted"
    TASK_ASSIGNED = "TaskAssigned"
    TASK_COMMENT_ADDED = "TaskCommentAdded"
    TASK_ATTACHMENT_ADDED = "TaskAttachmentAdded"
    TASK_DELETED = "TaskDeleted"

    USER_LOGGED_IN = "UserLoggedIn"
    USER_LOGGED_OUT = "UserLoggedOut"
    PASSWORD_CHANGED = "PasswordChanged"
    PASSWORD_RESET = "PasswordReset"
    EMAIL_VERIFIED = "EmailVerified"

    REPORT_GENERATED = "ReportGenerated"
    REPORT_EXPORTED = "ReportExported"

    OTHER = "Other"

    @property
    def code(self) -> int:
        return _ACTIVITY_CODES[self]


_ACTIVITY_CODES = {
    ActivityType.WORKSPACE_CREATED: 1,
    ActivityType.WORKSPACE_UPDATED: 2,
    ActivityType.WORKSPACE_DELETED: 3,
    ActivityType.WORKSPACE_SETTINGS_CHANGED: 4,
    ActivityType.USER_INVITED: 10,
    ActivityType.USER_JOINED: 11,
    ActivityType.USER_REMOVED: 12,
    ActivityType.USER_ROLE_CHANGED: 13,
    ActivityType.USER_PROFILE_UPDATED: 14,
    ActivityType.PROJECT_CREATED: 20,
    ActivityType.PROJECT_UPDATED: 21,
    ActivityType.PROJECT_DELETED: 22,
    ActivityType.PROJECT_ARCHIVED: 23,
    ActivityType.PROJECT_RESTORED: 24,
    ActivityType.PROJECT_MEMBER_ADDED: 25,
    ActivityType.PROJECT_MEMBER_REMOVED: 26,
    ActivityType.PROJECT_MEMBER_ROLE_CHANGED: 27,
    ActivityType.DOCUMENT_UPLOADED: 30,
    ActivityType.DOCUMENT_UPDATED: 31,
    ActivityType.DOCUMENT_DELETED: 32,
    ActivityType.DOCUMENT_DOWNLOADED: 33,
    ActivityType.DOCUMENT_VERSION_UPLOADED: 34,
    ActivityType.FRAMEWORK_ADDED: 40,
    ActivityType.FRAMEWORK_REMOVED: 41,
    ActivityType.COMPLIANCE_CHECK_STARTED: 50,
    ActivityType.COMPLIANCE_CHECK_COMPLETED: 51,
    ActivityType.COMPLIANCE_CHECK_FAILED: 52,
    ActivityType.FINDING_CREATED: 60,
    ActivityType.FINDING_UPDATED: 61,
    ActivityType.FINDING_STATUS_CHANGED: 62,
    ActivityType.FINDING_ASSIGNED: 63,
    ActivityType.FINDING_COMMENT_ADDED: 64,
    ActivityType.FINDING_DELETED: 65,
    ActivityType.TASK_CREATED: 70,
    ActivityType.TASK_UPDATED: 71,
    ActivityType.TASK_COMPLETED: 72,
    ActivityType.TASK_ASSIGNED: 73,
    ActivityType.TASK_COMMENT_ADDED: 74,
    ActivityType.TASK_ATTACHMENT_ADDED: 75,
    ActivityType.TASK_DELETED: 76,
    ActivityType.USER_LOGGED_IN: 80,
    ActivityType.USER_LOGGED_OUT: 81,
    ActivityType.PASSWORD_CHANGED: 82,
    ActivityType.PASSWORD_RESET: 83,
    ActivityType.EMAIL_VERIFIED: 84,
    ActivityType.REPORT_GENERATED: 90,
    ActivityType.REPORT_EXPORTED: 91,
    ActivityType.OTHER: 999,
}
