"""
Tests for institution and role resolution from email addresses.
"""

from models.institution import InstitutionModel
from schemas.user import Role
from utils.email_domain import (
    NO_MATCH,
    UNRECOGNIZED_DOMAIN_MESSAGE,
    analyze_email_domain,
    resolve,
    validate_email_domain,
)


def _institution(id, name, student, teacher):
    return InstitutionModel(
        id=id, name=name, student_email_suffix=student, teacher_email_suffix=teacher
    )


ACME = _institution(1, "Acme U", "@stu.acme.edu", "@acme.edu")
GLOBEX = _institution(2, "Globex College", "@students.globex.org", "@globex.org")


# ============================================================================
# RESOLVER
# ============================================================================


class TestResolve:
    def test_student_suffix(self):
        match = resolve("jane@stu.acme.edu", [ACME, GLOBEX])
        assert match.institution is ACME
        assert match.role == Role.STUDENT

    def test_teacher_suffix(self):
        match = resolve("prof@globex.org", [ACME, GLOBEX])
        assert match.institution is GLOBEX
        assert match.role == Role.TEACHER

    def test_no_match(self):
        assert resolve("someone@gmail.com", [ACME, GLOBEX]) == NO_MATCH
        assert not NO_MATCH.matched

    def test_case_insensitive(self):
        match = resolve("Jane.Doe@STU.Acme.EDU", [ACME])
        assert match.institution is ACME
        assert match.role == Role.STUDENT

    def test_suffix_case_insensitive(self):
        shouting = _institution(3, "Loud U", "@STU.LOUD.EDU", "@LOUD.EDU")
        assert resolve("kid@stu.loud.edu", [shouting]).role == Role.STUDENT

    def test_non_string_and_empty_input(self):
        for value in (None, "", 42, ["jane@stu.acme.edu"]):
            assert resolve(value, [ACME]) == NO_MATCH

    def test_empty_directory(self):
        assert resolve("jane@stu.acme.edu", []) == NO_MATCH

    def test_first_institution_in_order_wins(self):
        broad = _institution(1, "Edu Network", "cs.edu", "@staff.edu")
        narrow = _institution(2, "CS Dept", "@cs.edu", "@prof.cs.edu")
        assert resolve("ada@cs.edu", [broad, narrow]).institution is broad
        assert resolve("ada@cs.edu", [narrow, broad]).institution is narrow

    def test_student_suffix_checked_before_teacher(self):
        # Teacher suffix "@uca.es" would also match the student address
        uca = _institution(1, "UCA", "@alum.uca.es", "@uca.es")
        assert resolve("pepe@alum.uca.es", [uca]).role == Role.STUDENT
        assert resolve("pepe@uca.es", [uca]).role == Role.TEACHER


# ============================================================================
# DATABASE-BACKED LOOKUP AND VALIDATION
# ============================================================================


class TestValidateEmailDomain:
    def test_directory_scanned_by_id(self, db, acme, globex):
        match = analyze_email_domain(db, "x@students.globex.org")
        assert match.institution.id == globex.id

    def test_valid_student(self, db, acme):
        result = validate_email_domain(db, "jane@stu.acme.edu")
        assert result.is_valid is True
        assert result.message == "Email verified for Acme U (Student)"
        assert result.institution.name == "Acme U"
        assert result.role == Role.STUDENT

    def test_valid_teacher(self, db, acme):
        result = validate_email_domain(db, "prof@acme.edu")
        assert result.message == "Email verified for Acme U (Teacher)"
        assert result.role == Role.TEACHER

    def test_unrecognized(self, db, acme):
        result = validate_email_domain(db, "someone@gmail.com")
        assert result.is_valid is False
        assert result.message == UNRECOGNIZED_DOMAIN_MESSAGE
        assert result.institution is None
        assert result.role is None

    def test_payload_uses_client_keys(self, db, acme):
        payload = validate_email_domain(db, "jane@stu.acme.edu").model_dump(by_alias=True)
        assert payload["isValid"] is True
        assert payload["institution"]["studentEmailSuffix"] == "@stu.acme.edu"
