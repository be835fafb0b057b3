"""
Tests for contentforge.schema.validator

Covers:
  - validate_yaml_file()            — component and policy files (valid + invalid)
  - validate_metadata_dir()         — directory walk (shipped metadata passes)
  - validate_metadata_dir(strict=True)
  - duplicate component slug warnings
"""
from __future__ import annotations

from pathlib import Path

import yaml

from contentforge.schema.validator import (
    ValidationIssue,
    validate_metadata_dir,
    validate_yaml_file,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _write_yaml(path: Path, data: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data))
    return path


def _write_raw(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


_REPO_ROOT = Path(__file__).resolve().parents[2]
_METADATA_DIR = _REPO_ROOT / "metadata"

_VALID_COMPONENT = {
    "component": "teaser",
    "name": "Teaser",
    "dataType": "OBJECT",
    "fields": [
        {"name": "Title", "component": "text", "multiLanguage": True, "min": 1},
        {
            "name": "Body",
            "component": "list",
            "config": {
                "placeholder": "Write something",
                "blocks": {"fields": [{"name": "Quote", "component": "quote"}]},
                "range": {"json": {"min": 0}},
            },
        },
    ],
}


# ---------------------------------------------------------------------------
# validate_yaml_file — components
# ---------------------------------------------------------------------------


class TestValidateComponentFile:
    def test_valid_component(self, tmp_path):
        path = _write_yaml(tmp_path / "components" / "teaser.yaml", _VALID_COMPONENT)
        assert validate_yaml_file(path, "component.schema.json") == []

    def test_missing_data_type(self, tmp_path):
        path = _write_yaml(tmp_path / "c.yaml", {"component": "teaser"})
        issues = validate_yaml_file(path, "component.schema.json")
        assert len(issues) == 1
        assert "dataType" in issues[0].message

    def test_unknown_data_type(self, tmp_path):
        path = _write_yaml(tmp_path / "c.yaml", {"component": "teaser", "dataType": "DATE"})
        issues = validate_yaml_file(path, "component.schema.json")
        assert issues and issues[0].path == "dataType"

    def test_bad_slug(self, tmp_path):
        path = _write_yaml(tmp_path / "c.yaml", {"component": "Teaser Card", "dataType": "TEXT"})
        issues = validate_yaml_file(path, "component.schema.json")
        assert [i.path for i in issues] == ["component"]

    def test_unknown_field_key(self, tmp_path):
        data = {
            "component": "teaser",
            "dataType": "OBJECT",
            "fields": [{"name": "Title", "component": "text", "required": True}],
        }
        path = _write_yaml(tmp_path / "c.yaml", data)
        issues = validate_yaml_file(path, "component.schema.json")
        assert len(issues) == 1
        assert issues[0].path == "fields[0]"

    def test_nested_config_fields_are_validated(self, tmp_path):
        data = {
            "component": "teaser",
            "dataType": "OBJECT",
            "fields": [
                {
                    "name": "Body",
                    "component": "list",
                    "config": {"blocks": {"fields": [{"name": "Quote"}]}},
                }
            ],
        }
        path = _write_yaml(tmp_path / "c.yaml", data)
        issues = validate_yaml_file(path, "component.schema.json")
        assert len(issues) == 1
        assert issues[0].path == "fields[0]/config/blocks/fields[0]"
        assert "component" in issues[0].message

    def test_yaml_parse_error(self, tmp_path):
        path = _write_raw(tmp_path / "c.yaml", "component: [unclosed\n")
        issues = validate_yaml_file(path, "component.schema.json")
        assert len(issues) == 1
        assert "YAML parse error" in issues[0].message

    def test_empty_file(self, tmp_path):
        path = _write_raw(tmp_path / "c.yaml", "\n")
        issues = validate_yaml_file(path, "component.schema.json")
        assert "empty" in issues[0].message


# ---------------------------------------------------------------------------
# validate_yaml_file — policies
# ---------------------------------------------------------------------------


class TestValidatePolicyFile:
    def test_valid_policies(self, tmp_path):
        data = {
            "policies": [
                {
                    "name": "editors",
                    "roles": ["editor"],
                    "sites": ["*", "0b7e2f5c-9a61-4c1e-8f0a-6f3c2d1b4a59"],
                    "permissions": [
                        {
                            "resources": ["urn:dcm:content:*"],
                            "effect": "allow",
                            "actions": ["sites::content:read"],
                        }
                    ],
                }
            ]
        }
        path = _write_yaml(tmp_path / "policies.yaml", data)
        assert validate_yaml_file(path, "policies.schema.json") == []

    def test_resource_must_be_urn(self, tmp_path):
        data = {
            "policies": [
                {
                    "name": "bad",
                    "permissions": [{"resources": ["content/*"], "actions": ["*"]}],
                }
            ]
        }
        path = _write_yaml(tmp_path / "policies.yaml", data)
        issues = validate_yaml_file(path, "policies.schema.json")
        assert [i.path for i in issues] == ["policies[0]/permissions[0]/resources[0]"]

    def test_unknown_effect(self, tmp_path):
        data = {
            "policies": [
                {
                    "name": "bad",
                    "permissions": [
                        {"resources": ["urn:dcm:*"], "actions": ["*"], "effect": "maybe"}
                    ],
                }
            ]
        }
        path = _write_yaml(tmp_path / "policies.yaml", data)
        assert len(validate_yaml_file(path, "policies.schema.json")) == 1


# ---------------------------------------------------------------------------
# validate_metadata_dir
# ---------------------------------------------------------------------------


class TestValidateMetadataDir:
    def test_shipped_metadata_is_valid(self):
        assert validate_metadata_dir(_METADATA_DIR) == []

    def test_missing_directory(self, tmp_path):
        issues = validate_metadata_dir(tmp_path / "missing")
        assert len(issues) == 1
        assert "does not exist" in issues[0].message

    def test_collects_issues_across_files(self, tmp_path):
        _write_yaml(tmp_path / "components" / "good.yaml", _VALID_COMPONENT)
        _write_yaml(tmp_path / "components" / "bad.yaml", {"component": "bad"})
        _write_yaml(tmp_path / "policies.yaml", {"policies": [{"name": "x"}]})
        issues = validate_metadata_dir(tmp_path)
        files = sorted(i.file.name for i in issues)
        assert files == ["bad.yaml", "policies.yaml"]

    def test_duplicate_slug_is_warning(self, tmp_path):
        _write_yaml(tmp_path / "components" / "a.yaml", _VALID_COMPONENT)
        _write_yaml(tmp_path / "components" / "b.yaml", _VALID_COMPONENT)
        issues = validate_metadata_dir(tmp_path)
        assert len(issues) == 1
        assert issues[0].severity == "warning"
        assert "a.yaml" in issues[0].message

    def test_strict_escalates_warnings(self, tmp_path):
        _write_yaml(tmp_path / "components" / "a.yaml", _VALID_COMPONENT)
        _write_yaml(tmp_path / "components" / "b.yaml", _VALID_COMPONENT)
        issues = validate_metadata_dir(tmp_path, strict=True)
        assert [i.severity for i in issues] == ["error"]


class TestValidationIssue:
    def test_str(self):
        issue = ValidationIssue(file=Path("c.yaml"), message="boom", path="fields[0]")
        assert str(issue) == "[ERROR] c.yaml at fields[0]: boom"
