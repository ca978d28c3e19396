"""
Permission registry for the school administration backend.

Every capability token lives in ``Permission``; the token strings
(``"<resource>:<action>"``) are a stable contract because they are persisted
against audit records and exposed to clients. Categories only group tokens
for presentation and carry no enforcement meaning.
"""
import enum
from types import MappingProxyType


class RegistryIntegrityError(RuntimeError):
    pass


class Permission(str, enum.Enum):
    # User management
    USER_VIEW = "user:view"
    USER_CREATE = "user:create"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    USER_APPROVE = "user:approve"
    USER_DEACTIVATE = "user:deactivate"

    # Student management
    STUDENT_VIEW = "student:view"
    STUDENT_CREATE = "student:create"
    STUDENT_UPDATE = "student:update"
    STUDENT_DELETE = "student:delete"
    STUDENT_PROFILE = "student:profile"
    STUDENT_ID_CARDS = "student:id_cards"

    # Teacher management
    TEACHER_VIEW = "teacher:view"
    TEACHER_CREATE = "teacher:create"
    TEACHER_UPDATE = "teacher:update"
    TEACHER_DELETE = "teacher:delete"
    TEACHER_PROFILE = "teacher:profile"
    TEACHER_ASSIGNMENTS = "teacher:assignments"

    # Academic management
    ACADEMIC_VIEW = "academic:view"
    ACADEMIC_CURRICULUM = "academic:curriculum"
    ACADEMIC_CLASSES = "academic:classes"
    ACADEMIC_SCHEDULING = "academic:scheduling"
    ACADEMIC_ASSIGNMENTS = "academic:assignments"
    ACADEMIC_TIMETABLE = "academic:timetable"

    # Attendance
    ATTENDANCE_VIEW = "attendance:view"
    ATTENDANCE_MARK = "attendance:mark"
    ATTENDANCE_BULK = "attendance:bulk"
    ATTENDANCE_REPORTS = "attendance:reports"

    # Grading
    GRADING_VIEW = "grading:view"
    GRADING_CREATE = "grading:create"
    GRADING_UPDATE = "grading:update"
    GRADING_REPORTS = "grading:reports"

    # Financial management
    FINANCIAL_VIEW = "financial:view"
    FINANCIAL_CREATE = "financial:create"
    FINANCIAL_UPDATE = "financial:update"
    FINANCIAL_REPORTS = "financial:reports"
    FINANCIAL_FEES = "financial:fees"

    # Library
    LIBRARY_VIEW = "library:view"
    LIBRARY_BOOKS = "library:books"
    LIBRARY_ISSUE = "library:issue"
    LIBRARY_RETURN = "library:return"
    LIBRARY_REPORTS = "library:reports"

    # Communication
    COMMUNICATION_VIEW = "communication:view"
    COMMUNICATION_ANNOUNCE = "communication:announce"
    COMMUNICATION_NOTIFICATIONS = "communication:notifications"

    # HR management
    HR_VIEW = "hr:view"
    HR_EMPLOYEES = "hr:employees"
    HR_PAYROLL = "hr:payroll"
    HR_REPORTS = "hr:reports"

    # Facilities
    FACILITIES_VIEW = "facilities:view"
    FACILITIES_MANAGE = "facilities:manage"
    FACILITIES_BOOKING = "facilities:booking"

    # Transportation
    TRANSPORT_VIEW = "transport:view"
    TRANSPORT_MANAGE = "transport:manage"
    TRANSPORT_ROUTES = "transport:routes"

    # Hostel
    HOSTEL_VIEW = "hostel:view"
    HOSTEL_MANAGE = "hostel:manage"
    HOSTEL_ROOMS = "hostel:rooms"

    # Examinations
    EXAM_VIEW = "exam:view"
    EXAM_CREATE = "exam:create"
    EXAM_MANAGE = "exam:manage"
    EXAM_RESULTS = "exam:results"

    # Reports
    REPORTS_VIEW = "reports:view"
    REPORTS_GENERATE = "reports:generate"
    REPORTS_EXPORT = "reports:export"

    # System administration
    SYSTEM_SETTINGS = "system:settings"
    SYSTEM_BACKUP = "system:backup"
    SYSTEM_AUDIT = "system:audit"
    SYSTEM_USERS = "system:users"

    # Role management (super admin only)
    ROLE_VIEW = "role:view"
    ROLE_CREATE = "role:create"
    ROLE_UPDATE = "role:update"
    ROLE_DELETE = "role:delete"
    ROLE_ASSIGN = "role:assign"


P = Permission

PERMISSION_CATEGORIES = MappingProxyType({
    "User Management": (
        P.USER_VIEW,
        P.USER_CREATE,
        P.USER_UPDATE,
        P.USER_DELETE,
        P.USER_APPROVE,
        P.USER_DEACTIVATE,
    ),
    "Student Management": (
        P.STUDENT_VIEW,
        P.STUDENT_CREATE,
        P.STUDENT_UPDATE,
        P.STUDENT_DELETE,
        P.STUDENT_PROFILE,
        P.STUDENT_ID_CARDS,
    ),
    "Teacher Management": (
        P.TEACHER_VIEW,
        P.TEACHER_CREATE,
        P.TEACHER_UPDATE,
        P.TEACHER_DELETE,
        P.TEACHER_PROFILE,
        P.TEACHER_ASSIGNMENTS,
    ),
    "Academic Management": (
        P.ACADEMIC_VIEW,
        P.ACADEMIC_CURRICULUM,
        P.ACADEMIC_CLASSES,
        P.ACADEMIC_SCHEDULING,
        P.ACADEMIC_ASSIGNMENTS,
        P.ACADEMIC_TIMETABLE,
    ),
    "Attendance": (
        P.ATTENDANCE_VIEW,
        P.ATTENDANCE_MARK,
        P.ATTENDANCE_BULK,
        P.ATTENDANCE_REPORTS,
    ),
    "Grading": (
        P.GRADING_VIEW,
        P.GRADING_CREATE,
        P.GRADING_UPDATE,
        P.GRADING_REPORTS,
    ),
    "Financial Management": (
        P.FINANCIAL_VIEW,
        P.FINANCIAL_CREATE,
        P.FINANCIAL_UPDATE,
        P.FINANCIAL_REPORTS,
        P.FINANCIAL_FEES,
    ),
    "Library": (
        P.LIBRARY_VIEW,
        P.LIBRARY_BOOKS,
        P.LIBRARY_ISSUE,
        P.LIBRARY_RETURN,
        P.LIBRARY_REPORTS,
    ),
    "Communication": (
        P.COMMUNICATION_VIEW,
        P.COMMUNICATION_ANNOUNCE,
        P.COMMUNICATION_NOTIFICATIONS,
    ),
    "HR Management": (
        P.HR_VIEW,
        P.HR_EMPLOYEES,
        P.HR_PAYROLL,
        P.HR_REPORTS,
    ),
    "Other Systems": (
        P.FACILITIES_VIEW,
        P.FACILITIES_MANAGE,
        P.FACILITIES_BOOKING,
        P.TRANSPORT_VIEW,
        P.TRANSPORT_MANAGE,
        P.TRANSPORT_ROUTES,
        P.HOSTEL_VIEW,
        P.HOSTEL_MANAGE,
        P.HOSTEL_ROOMS,
        P.EXAM_VIEW,
        P.EXAM_CREATE,
        P.EXAM_MANAGE,
        P.EXAM_RESULTS,
        P.REPORTS_VIEW,
        P.REPORTS_GENERATE,
        P.REPORTS_EXPORT,
    ),
    "System Administration": (
        P.SYSTEM_SETTINGS,
        P.SYSTEM_BACKUP,
        P.SYSTEM_AUDIT,
        P.SYSTEM_USERS,
    ),
    "Role Management": (
        P.ROLE_VIEW,
        P.ROLE_CREATE,
        P.ROLE_UPDATE,
        P.ROLE_DELETE,
        P.ROLE_ASSIGN,
    ),
})

del P


def list_all_permissions() -> list[Permission]:
    return list(Permission)


def list_categories() -> list[str]:
    return list(PERMISSION_CATEGORIES)


def list_permissions_for_category(category: str) -> list[Permission]:
    """Members of ``category`` in declaration order; unknown names yield ``[]``."""
    return list(PERMISSION_CATEGORIES.get(category, ()))


def verify_registry() -> None:
    """Fail fast when the categorized view and the flat registry disagree."""
    # Enum silently aliases members that share a value.
    if len(Permission.__members__) != len(Permission):
        aliases = [name for name, member in Permission.__members__.items() if member.name != name]
        raise RegistryIntegrityError(f"Duplicate permission tokens: {', '.join(aliases)}")

    categorized: set[Permission] = set()
    for category, members in PERMISSION_CATEGORIES.items():
        if len(set(members)) != len(members):
            raise RegistryIntegrityError(f"Category '{category}' lists a permission twice")
        categorized.update(members)

    orphans = [p.value for p in Permission if p not in categorized]
    if orphans:
        raise RegistryIntegrityError(f"Permissions without a category: {', '.join(orphans)}")


verify_registry()
