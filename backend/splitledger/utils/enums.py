from enum import Enum

class ExpenseCategory(str, Enum):
    FOOD = "food"
    TRANSPORT = "transport"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    UTILITIES = "utilities"
    HEALTHCARE = "healthcare"
    TRAVEL = "travel"
    OTHER = "other"

class SplitMode(str, Enum):
    EQUAL = "equal"
    CUSTOM = "custom"

class MemberRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"

class GroupState(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
