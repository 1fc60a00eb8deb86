from fastapi import HTTPException, status


class NotFound(HTTPException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

class InvalidReference(HTTPException):
    """A referenced record in the request body does not exist."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class PatientNotFound(InvalidReference):
    def __init__(self):
        super().__init__("Patient not found")

class DoctorNotFound(InvalidReference):
    def __init__(self):
        super().__init__("Doctor not found")

class Conflict(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class SlotConflict(Conflict):
    def __init__(self):
        super().__init__("Doctor is not available at this time")

class DuplicateNationalId(Conflict):
    def __init__(self):
        super().__init__("Patient with this National ID already exists")

class DuplicateEmail(Conflict):
    def __init__(self):
        super().__init__("User with this email already exists")

class DuplicateStaffId(Conflict):
    def __init__(self):
        super().__init__("Staff ID already in use")

class InvalidCurrentPassword(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )
