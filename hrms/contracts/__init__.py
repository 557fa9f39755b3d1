"""Request, response and event types shared between modules.

Modules never import each other; they exchange these values through the
mediator and the event bus.
"""

from .company import (
    AssignUserToBranchCommand,
    AssignUserToCompanyCommand,
    BranchDTO,
    CompanyDTO,
    CreateCompanyCommand,
    CreateDefaultBranchCommand,
    CreateUserWithPasswordCommand,
    CreatedUser,
    GetCompanyQuery,
    ListCompaniesQuery,
)
from .events import LogEvent
from .tenant import (
    BranchAccess,
    CompanyRole,
    GetBranchAccessQuery,
    GetCompanyRoleQuery,
    ListUserBranchesQuery,
    UserBranches,
)

__all__ = [
    "AssignUserToBranchCommand",
    "AssignUserToCompanyCommand",
    "BranchAccess",
    "BranchDTO",
    "CompanyDTO",
    "CompanyRole",
    "CreateCompanyCommand",
    "CreateDefaultBranchCommand",
    "CreateUserWithPasswordCommand",
    "CreatedUser",
    "GetBranchAccessQuery",
    "GetCompanyQuery",
    "GetCompanyRoleQuery",
    "ListCompaniesQuery",
    "ListUserBranchesQuery",
    "LogEvent",
    "UserBranches",
]
