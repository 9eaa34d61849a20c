"""Import all models so SQLModel.metadata picks them up."""

from bizdash.models.category import (
    Category,
    CategoryCreate,
    CategoryRead,
    CategoryTemplate,
    CategoryTemplateRead,
    CategoryUpdate,
)
from bizdash.models.invite import Invite, InviteCreate, InviteCreated
from bizdash.models.library import (
    LibraryImport,
    ResourceOverride,
    ResourceTemplate,
    ResourceTemplateRead,
    TenantResourceTemplate,
)
from bizdash.models.membership import (
    AdminFlag,
    MemberAdd,
    MemberRead,
    Membership,
    MembershipRead,
    RoleUpdate,
)
from bizdash.models.prompt import EmailPrompt, EmailPromptCreate, EmailPromptRead, PromptType
from bizdash.models.resource import Resource, ResourceCreate, ResourceRead, ResourceUpdate
from bizdash.models.task import (
    Comment,
    CommentCreate,
    CommentRead,
    Task,
    TaskCreate,
    TaskPermission,
    TaskRead,
    TaskStatus,
    TaskUpdate,
)
from bizdash.models.tenant import Tenant, TenantCreate, TenantRead
from bizdash.models.user import AdminUserRead, User, UserRead

__all__ = [
    "AdminFlag",
    "AdminUserRead",
    "Category",
    "CategoryCreate",
    "CategoryRead",
    "CategoryTemplate",
    "CategoryTemplateRead",
    "CategoryUpdate",
    "Comment",
    "CommentCreate",
    "CommentRead",
    "EmailPrompt",
    "EmailPromptCreate",
    "EmailPromptRead",
    "Invite",
    "InviteCreate",
    "InviteCreated",
    "LibraryImport",
    "MemberAdd",
    "MemberRead",
    "Membership",
    "MembershipRead",
    "PromptType",
    "Resource",
    "ResourceCreate",
    "ResourceOverride",
    "ResourceRead",
    "ResourceTemplate",
    "ResourceTemplateRead",
    "ResourceUpdate",
    "RoleUpdate",
    "Task",
    "TaskCreate",
    "TaskPermission",
    "TaskRead",
    "TaskStatus",
    "TaskUpdate",
    "Tenant",
    "TenantCreate",
    "TenantRead",
    "TenantResourceTemplate",
    "User",
    "UserRead",
]
