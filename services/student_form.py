"""
services.student_form - Immutable form value and its pure validator.

The add and edit dialogs both submit a StudentForm.  Validation never
touches the database; uniqueness is the service's job.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from import_engine.cells import cell_text, parse_date
from import_engine.records import StudentRecord
from services.errors import ValidationError


@dataclass(frozen=True)
class StudentForm:
    student_name: str = ""
    srn_no: str = ""
    class_label: str = ""
    section: str = ""
    date_of_birth: str = ""

    @classmethod
    def from_mapping(cls, data: dict) -> "StudentForm":
        """Build a form from request JSON; accepts 'class' or 'class_label'."""
        return cls(
            student_name=cell_text(data.get("student_name")),
            srn_no=cell_text(data.get("srn_no")),
            class_label=cell_text(data.get("class_label", data.get("class"))),
            section=cell_text(data.get("section")),
            date_of_birth=cell_text(data.get("date_of_birth")),
        )

    def with_changes(self, **changes) -> "StudentForm":
        return replace(self, **changes)


_LABELS = {
    "student_name": "Student name",
    "srn_no": "SRN number",
    "class_label": "Class",
    "section": "Section",
    "date_of_birth": "Date of birth",
}


def validate_student_form(form: StudentForm) -> StudentRecord:
    """Return a StudentRecord or raise ValidationError with per-field messages."""
    errors: dict[str, str] = {}
    for name, label in _LABELS.items():
        if not getattr(form, name).strip():
            errors[name] = f"{label} is required"

    dob = None
    if "date_of_birth" not in errors:
        try:
            dob = parse_date(form.date_of_birth)
        except ValueError:
            errors["date_of_birth"] = "Date of birth is not a valid date"

    if errors:
        raise ValidationError("Please fill in all required fields", errors)

    return StudentRecord(
        student_name=form.student_name.strip(),
        srn_no=form.srn_no.strip(),
        class_label=form.class_label.strip(),
        section=form.section.strip(),
        date_of_birth=dob,
    )
