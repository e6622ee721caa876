"""Domain exceptions."""

from __future__ import annotations


class AdmissionError(Exception):
    """Base class for errors raised by the admission CRM core."""


class InvalidProgram(AdmissionError, ValueError):
    def __init__(self, program: str, valid: list[str]):
        self.program = program
        self.valid = valid
        super().__init__(f"Invalid program: {program}. Must be one of: {', '.join(valid)}")


class InvalidAssignee(AdmissionError, ValueError):
    def __init__(self, member: str):
        self.member = member
        super().__init__(f"{member!r} is not on the admission team roster")


class WorkloadLookupFailed(AdmissionError):
    """Workload snapshot could not be built; allocation falls back to round-robin."""


class StatePersistenceFailed(AdmissionError):
    """The shared cursor could not be read or written; the local cursor is used instead."""


class DuplicateLead(AdmissionError):
    def __init__(self, phone: str):
        self.phone = phone
        super().__init__("An application with this phone number already exists")


class LeadNotFound(AdmissionError):
    def __init__(self, lead_id: int):
        self.lead_id = lead_id
        super().__init__(f"Lead {lead_id} not found")


class LeadStoreUnavailable(AdmissionError):
    """The lead store did not answer within the allowed time."""
