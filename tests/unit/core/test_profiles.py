"""
Tests for profile aggregation helpers.

Tests:
- Stripping client ids from sections
- Pre-filling drafts from a profile
- Completeness flags
"""

from types import SimpleNamespace

from core.profiles import (
    merge_profile_into_draft,
    profile_completeness,
    sections_of,
    strip_internal_ids,
)


class TestStripInternalIds:

    def test_top_level_and_nested_ids_removed(self):
        payload = {
            "_id": "abc",
            "userId": "u-1",
            "personal_info": {"_id": "p", "firstName": "Jane"},
            "education": [{"id": "e-1", "institution": "AAU"}],
        }
        cleaned = strip_internal_ids(payload)
        assert "_id" not in cleaned
        assert "userId" not in cleaned
        assert cleaned["personal_info"] == {"firstName": "Jane"}
        assert cleaned["education"] == [{"institution": "AAU"}]

    def test_list_section_none_becomes_empty_list(self):
        assert strip_internal_ids({"training": None})["training"] == []

    def test_single_object_is_wrapped(self):
        cleaned = strip_internal_ids({"languages": {"language": "Amharic", "proficiency": "native"}})
        assert cleaned["languages"] == [{"language": "Amharic", "proficiency": "native"}]

    def test_missing_sections_stay_missing(self):
        assert strip_internal_ids({"additional_info": "x"}) == {"additional_info": "x"}

    def test_input_is_not_mutated(self):
        payload = {"personal_info": {"_id": "p", "firstName": "Jane"}}
        strip_internal_ids(payload)
        assert payload["personal_info"]["_id"] == "p"


class TestMergeProfileIntoDraft:

    def test_empty_sections_filled_from_profile(self):
        profile = {
            "personal_info": {"firstName": "Jane"},
            "education": [{"institution": "AAU"}],
            "languages": [],
        }
        merged = merge_profile_into_draft(profile, {"education": []})
        assert merged["personal_info"] == {"firstName": "Jane"}
        assert merged["education"] == [{"institution": "AAU"}]
        assert "languages" not in merged

    def test_draft_values_win(self):
        profile = {"personal_info": {"firstName": "Profile"}}
        draft = {"personal_info": {"firstName": "Draft"}}
        assert merge_profile_into_draft(profile, draft)["personal_info"] == {"firstName": "Draft"}

    def test_no_profile(self):
        assert merge_profile_into_draft(None, {"additional_info": "x"}) == {"additional_info": "x"}

    def test_lists_are_copied(self):
        profile = {"training": [{"name": "AML"}]}
        merged = merge_profile_into_draft(profile, {})
        merged["training"].append({"name": "KYC"})
        assert profile["training"] == [{"name": "AML"}]


class TestProfileCompleteness:

    def test_empty_profile(self):
        flags = profile_completeness(None)
        assert flags["overall"] == 0
        assert not any(flags[k] for k in ("personal", "education", "currentWork"))

    def test_personal_requires_name_email_phone(self):
        partial = {"personal_info": {"firstName": "Jane", "lastName": "Doe", "email": "j@example.com"}}
        assert profile_completeness(partial)["personal"] is False
        partial["personal_info"]["phone"] = "0911223344"
        assert profile_completeness(partial)["personal"] is True

    def test_current_work_requires_company_and_position(self):
        assert profile_completeness({"current_experience": {"company": "Acme"}})["currentWork"] is False
        complete = {"current_experience": {"company": "Acme", "position": "Analyst"}}
        assert profile_completeness(complete)["currentWork"] is True

    def test_overall_is_rounded_percentage(self):
        profile = {
            "personal_info": {"firstName": "J", "lastName": "D", "email": "j@example.com", "phone": "1"},
            "education": [{"institution": "AAU"}],
        }
        # 2 of 6 sections
        assert profile_completeness(profile)["overall"] == 33

    def test_all_sections_complete(self):
        profile = {
            "personal_info": {"firstName": "J", "lastName": "D", "email": "j@example.com", "phone": "1"},
            "education": [{}],
            "current_experience": {"company": "Acme", "position": "Analyst"},
            "previous_experience": [{}],
            "training": [{}],
            "languages": [{}],
        }
        assert profile_completeness(profile)["overall"] == 100


def test_sections_of_reads_records_and_mappings():
    record = SimpleNamespace(personal_info={"firstName": "Jane"}, education=[])
    from_record = sections_of(record)
    assert from_record["personal_info"] == {"firstName": "Jane"}
    assert from_record["training"] is None
    assert sections_of({"education": [1]})["education"] == [1]
