import pytest

from db.models import Block, District, School, State, Student, ROLE_EDITOR
from services.errors import NotFound, PermissionDenied, ValidationError
from services.hierarchy_service import HierarchyService
from services.scope import Scope, resolve_scope
from services.student_form import StudentForm
from services.student_service import StudentService
from services.user_service import UserService

from factories import StudentFactory, SchoolFactory, BlockFactory, DistrictFactory


def _form(srn="SRN100", name="Kiran"):
    return StudentForm(student_name=name, srn_no=srn, class_label="6",
                       section="A", date_of_birth="2013-07-07")


# ── Scope ──────────────────────────────────────────────────────────────

def test_resolve_scope_from_profile(session, school_profile):
    scope = resolve_scope(session, school_profile.user_id)
    assert scope.role == "school"
    assert scope.school_id == school_profile.school_id
    assert not scope.is_admin


def test_unknown_user_has_no_scope(session):
    with pytest.raises(PermissionDenied):
        resolve_scope(session, "nobody")
    with pytest.raises(PermissionDenied):
        resolve_scope(session, "")


def test_editor_sees_everything_but_cannot_edit_hierarchy():
    editor = Scope(role=ROLE_EDITOR, user_id="ed")
    assert editor.is_admin
    assert editor.can_access_school("any")
    assert not editor.can_manage_hierarchy()


# ── Students ───────────────────────────────────────────────────────────

def test_school_user_only_sees_own_students(session, school, other_school, school_scope):
    mine = StudentFactory(school=school)
    StudentFactory(school=other_school)

    assert [s.id for s in StudentService.search(session, school_scope)] == [mine.id]


def test_admin_sees_all_students(session, school, other_school, admin_scope):
    StudentFactory(school=school)
    StudentFactory(school=other_school)
    assert len(StudentService.search(session, admin_scope)) == 2


def test_search_by_srn_substring_and_hierarchy(session, admin_scope):
    block = BlockFactory()
    in_block = SchoolFactory(block=block)
    StudentFactory(school=in_block, srn_no="KA-001")
    StudentFactory(school=in_block, srn_no="KA-002", section="B")
    StudentFactory(srn_no="TN-001")

    assert {s.srn_no for s in StudentService.search(session, admin_scope, q="ka-")} == \
        {"KA-001", "KA-002"}
    assert {s.srn_no for s in StudentService.search(session, admin_scope, block_id=block.id)} == \
        {"KA-001", "KA-002"}
    assert {s.srn_no for s in StudentService.search(
        session, admin_scope, state_id=block.district.state_id)} == {"KA-001", "KA-002"}
    assert [s.srn_no for s in StudentService.search(session, admin_scope, section="B")] == \
        ["KA-002"]


def test_create_rejects_duplicate_srn(session, school, school_scope):
    StudentService.create(session, school_scope, school.id, _form())
    session.commit()
    with pytest.raises(ValidationError, match="already exists"):
        StudentService.create(session, school_scope, school.id, _form(name="Other"))


def test_school_user_cannot_write_to_other_school(session, other_school, school_scope):
    with pytest.raises(PermissionDenied):
        StudentService.create(session, school_scope, other_school.id, _form())


def test_school_user_cannot_read_other_school_student(session, other_school, school_scope):
    student = StudentFactory(school=other_school)
    with pytest.raises(NotFound):
        StudentService.get(session, school_scope, student.id)


def test_update_keeps_own_srn(session, school, school_scope):
    student = StudentFactory(school=school, srn_no="SRN100")
    updated = StudentService.update(session, school_scope, student.id,
                                    _form(srn="SRN100", name="Renamed"))
    assert updated.student_name == "Renamed"


def test_update_to_taken_srn_fails(session, school, school_scope):
    StudentFactory(school=school, srn_no="TAKEN")
    student = StudentFactory(school=school, srn_no="MINE")
    with pytest.raises(ValidationError):
        StudentService.update(session, school_scope, student.id, _form(srn="TAKEN"))


def test_dashboard_stats(session, school, school_scope, admin_scope):
    StudentFactory(school=school, photo_path="p.jpg")
    StudentFactory(school=school)
    StudentFactory()

    assert StudentService.dashboard_stats(session, school_scope) == {
        "total_students": 2, "students_with_photos": 1,
    }
    admin = StudentService.dashboard_stats(session, admin_scope)
    assert admin["total_students"] == 3
    assert admin["total_schools"] == 2


# ── Hierarchy ──────────────────────────────────────────────────────────

def test_create_cascading_hierarchy(session, admin_scope):
    state = HierarchyService.create(session, admin_scope, "states", {"name": "Goa", "code": "ga"})
    district = HierarchyService.create(session, admin_scope, "districts",
                                       {"name": "North Goa", "code": "NG", "state_id": state.id})
    block = HierarchyService.create(session, admin_scope, "blocks",
                                    {"name": "Bardez", "code": "BZ", "district_id": district.id})
    school = HierarchyService.create(session, admin_scope, "schools",
                                     {"name": "GHS Mapusa", "code": "GHS01", "block_id": block.id})
    session.commit()

    assert state.code == "GA"
    assert [d.name for d in HierarchyService.list_level(
        session, admin_scope, "districts", state.id)] == ["North Goa"]
    assert school.to_dict()["state"] == "Goa"


def test_duplicate_name_within_parent(session, admin_scope):
    district = DistrictFactory()
    data = {"name": "Same", "code": "X1", "district_id": district.id}
    HierarchyService.create(session, admin_scope, "blocks", data)
    with pytest.raises(ValidationError) as exc:
        HierarchyService.create(session, admin_scope, "blocks", {**data, "code": "X2"})
    assert "name" in exc.value.errors


def test_same_block_name_in_other_district_is_allowed(session, admin_scope):
    for district in (DistrictFactory(), DistrictFactory()):
        HierarchyService.create(session, admin_scope, "blocks",
                                {"name": "Central", "code": "C", "district_id": district.id})


def test_unknown_parent_rejected(session, admin_scope):
    with pytest.raises(ValidationError):
        HierarchyService.create(session, admin_scope, "districts",
                                {"name": "X", "code": "X", "state_id": "missing"})


def test_school_user_cannot_change_hierarchy(session, school_scope):
    with pytest.raises(PermissionDenied):
        HierarchyService.create(session, school_scope, "states", {"name": "X", "code": "X"})


def test_school_user_lists_only_own_school(session, school, other_school, school_scope):
    assert [s.id for s in HierarchyService.list_level(session, school_scope, "schools")] == \
        [school.id]


def test_deleting_state_cascades(session, admin_scope):
    student = StudentFactory()
    state_id = student.school.block.district.state_id

    HierarchyService.delete(session, admin_scope, "states", state_id)
    session.commit()
    session.expire_all()

    assert session.get(State, state_id) is None
    assert session.query(District).count() == 0
    assert session.query(Block).count() == 0
    assert session.query(School).count() == 0
    assert session.query(Student).count() == 0


def test_update_school_code_must_stay_unique(session, admin_scope):
    a = SchoolFactory(code="AAA")
    SchoolFactory(code="BBB")
    with pytest.raises(ValidationError):
        HierarchyService.update(session, admin_scope, "schools", a.id, {"code": "BBB"})


# ── Users ──────────────────────────────────────────────────────────────

def test_school_role_needs_school(session, admin_scope):
    with pytest.raises(ValidationError) as exc:
        UserService.create(session, admin_scope,
                           {"user_id": "u9", "name": "N", "email": "e@x", "role": "school"})
    assert "school_id" in exc.value.errors


def test_admin_role_drops_school(session, admin_scope, school):
    profile = UserService.create(session, admin_scope, {
        "user_id": "u10", "name": "N", "email": "e@x", "role": "admin", "school_id": school.id,
    })
    assert profile.school_id is None


def test_only_admin_manages_users(session, school_scope):
    with pytest.raises(PermissionDenied):
        UserService.list_profiles(session, school_scope)


def test_cannot_delete_self(session, admin_scope, admin_profile):
    with pytest.raises(ValidationError):
        UserService.delete(session, admin_scope, admin_profile.id)
