"""
import_engine.field_map - Spreadsheet header ↔ student attribute mapping.

The same labels are used by the import template, the importer's header
check, and the first five columns of the export, so an exported file
can be fed straight back in.
"""

# Header label  →  Student model attribute
REQUIRED_FIELDS: dict[str, str] = {
    "Student Name":  "student_name",
    "SRN No":        "srn_no",
    "Class":         "class_label",
    "Section":       "section",
    "Date of Birth": "date_of_birth",
}

REQUIRED_HEADERS = tuple(REQUIRED_FIELDS)

NAME_HEADER  = "Student Name"
SRN_HEADER   = "SRN No"
DOB_HEADER   = "Date of Birth"

# Export-only columns, appended after the required ones
CONTEXT_HEADERS = (
    "School",
    "Block",
    "District",
    "State",
    "Registration Date",
    "Photo Filename",
)

EXPORT_HEADERS = REQUIRED_HEADERS + CONTEXT_HEADERS

SHEET_NAME = "Students"
