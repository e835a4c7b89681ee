"""Import all models so SQLModel.metadata picks them up."""

from photohub.models.album import (
    Album,
    AlbumBatch,
    AlbumBatchEntry,
    AlbumCreate,
    AlbumDetail,
    AlbumRead,
    AlbumUpdate,
)
from photohub.models.invite import (
    EmailInvite,
    EmailInviteStatus,
    EmailInviteType,
    InviteAccept,
    InviteAccepted,
    InviteCreate,
    InviteIssued,
    InviteRead,
    InviteRegister,
    InviteValidation,
)
from photohub.models.photo import Photo, PhotoRead, SignedUrlRead
from photohub.models.project import (
    Accessibility,
    AlbumPreview,
    CollaboratorCreate,
    CollaboratorRead,
    Project,
    ProjectCreate,
    ProjectDetail,
    ProjectRead,
    ProjectStatus,
    ProjectUpdate,
    ProjectUserProfile,
)
from photohub.models.refresh_token import RefreshToken
from photohub.models.tenant import Tenant, TenantRead
from photohub.models.user import (
    AuthPayload,
    User,
    UserProfile,
    UserProfileRead,
    UserRead,
    UserRole,
)

__all__ = [
    "Accessibility",
    "Album",
    "AlbumBatch",
    "AlbumBatchEntry",
    "AlbumCreate",
    "AlbumDetail",
    "AlbumPreview",
    "AlbumRead",
    "AlbumUpdate",
    "AuthPayload",
    "CollaboratorCreate",
    "CollaboratorRead",
    "EmailInvite",
    "EmailInviteStatus",
    "EmailInviteType",
    "InviteAccept",
    "InviteAccepted",
    "InviteCreate",
    "InviteIssued",
    "InviteRead",
    "InviteRegister",
    "InviteValidation",
    "Photo",
    "PhotoRead",
    "Project",
    "ProjectCreate",
    "ProjectDetail",
    "ProjectRead",
    "ProjectStatus",
    "ProjectUpdate",
    "ProjectUserProfile",
    "RefreshToken",
    "SignedUrlRead",
    "Tenant",
    "TenantRead",
    "User",
    "UserProfile",
    "UserProfileRead",
    "UserRead",
    "UserRole",
]
