"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class Program(str, Enum):
    BAR_TRANSFER = "Bar Transfer Course"
    LLM_HUMAN_RIGHTS = "LLM Human Rights"
    LLB_HONS = "LLB (Hons)"
    LLM_CORPORATE = "LLM Corporate"


class LeadStatus(str, Enum):
    NO_CONTACT = "No Contact"
    THINKING = "Thinking"
    INTERESTED = "Interested"
    NEXT_SESSION = "Next Session"
    WON = "Won"
    NOT_INTERESTED = "Not Interested"
    NOT_AFFORDABLE = "Not Affordable"


# Round-robin order of the admission team
DEFAULT_ROSTER: tuple[str, ...] = (
    "Faizan Ullah",
    "Shahzaib Shams",
    "Aneeza Komal",
    "Alvina Sami",
    "Abubakr Mahmood",
)
