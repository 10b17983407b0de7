from dataclasses import FrozenInstanceError
from datetime import date

import pytest

from services.errors import ValidationError
from services.student_form import StudentForm, validate_student_form


def _form(**overrides):
    base = StudentForm(
        student_name=" Priya ", srn_no="SRN9", class_label="8",
        section="C", date_of_birth="2011-02-03",
    )
    return base.with_changes(**overrides)


def test_valid_form_gives_record():
    record = validate_student_form(_form())
    assert record.student_name == "Priya"
    assert record.date_of_birth == date(2011, 2, 3)


def test_every_missing_field_is_reported():
    with pytest.raises(ValidationError) as exc:
        validate_student_form(StudentForm())
    assert set(exc.value.errors) == {
        "student_name", "srn_no", "class_label", "section", "date_of_birth",
    }


def test_bad_date_is_field_error():
    with pytest.raises(ValidationError) as exc:
        validate_student_form(_form(date_of_birth="31/31/2011"))
    assert exc.value.errors == {"date_of_birth": "Date of birth is not a valid date"}


def test_form_is_immutable():
    form = _form()
    with pytest.raises(FrozenInstanceError):
        form.srn_no = "other"
    assert form.with_changes(srn_no="other").srn_no == "other"
    assert form.srn_no == "SRN9"


def test_from_mapping_accepts_class_key():
    form = StudentForm.from_mapping({"student_name": "A", "class": 5, "srn_no": 77})
    assert form.class_label == "5"
    assert form.srn_no == "77"
