from __future__ import annotations

import pydantic
import pytest

from accesspoint_sync.models import AccessPoint, AccessPointUpdate, APIResponse


def test_access_point_dedupes_sets_and_defaults_optionals(record_factory):
    ap = AccessPoint.model_validate(record_factory(tags=["a", "b", "a"], promptExample=None))
    assert ap.tags == ["a", "b"]
    assert ap.prompt_example == ""
    assert ap.subnet_url == ""
    assert ap.input == ""


def test_to_logical_uses_camel_case_names(record_factory):
    logical = AccessPoint.model_validate(record_factory()).to_logical()
    assert set(logical) == {
        "id",
        "subnetId",
        "subnetName",
        "description",
        "input",
        "output",
        "inputType",
        "outputType",
        "capabilities",
        "tags",
        "promptExample",
        "fileUpload",
        "fileDownload",
        "subnetUrl",
        "createdAt",
        "updatedAt",
    }


def test_unknown_fields_are_rejected(record_factory):
    with pytest.raises(pydantic.ValidationError):
        AccessPoint.model_validate(record_factory(color="blue"))


def test_update_changes_only_lists_supplied_fields():
    update = AccessPointUpdate.model_validate({"description": "d", "fileUpload": True})
    assert update.changes() == {"description": "d", "file_upload": True}


def test_envelope_helpers():
    assert APIResponse.ok([1]).model_dump() == {"success": True, "data": [1], "error": None}
    assert APIResponse.fail("nope").model_dump() == {"success": False, "data": None, "error": "nope"}
