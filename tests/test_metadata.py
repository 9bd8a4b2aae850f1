import json

import pytest

from dirmatrix.core.metadata import (
    build_entry, enrich_directories, load_metadata, metadata_format_for, parse_metadata,
)
from dirmatrix.exceptions import MetadataError


class TestParseMetadata:

    def test_json(self):
        assert parse_metadata('{"name": "p1", "version": 2}', "json") == {"name": "p1", "version": 2}

    def test_yaml(self):
        assert parse_metadata("name: p1\ntags:\n  - a\n  - b\n", "yaml") == {"name": "p1", "tags": ["a", "b"]}

    def test_empty_yaml_document_is_empty_mapping(self):
        assert parse_metadata("", "yaml") == {}

    @pytest.mark.parametrize("content,fmt", [
        ("{broken", "json"),
        ("key: [unclosed", "yaml"),
        ("[1, 2, 3]", "json"),
        ("- just\n- a list\n", "yaml"),
    ])
    def test_invalid_documents_raise(self, content, fmt):
        with pytest.raises(MetadataError):
            parse_metadata(content, fmt)

    def test_unknown_format_raises(self):
        with pytest.raises(MetadataError):
            parse_metadata("x = 1", "toml")

    @pytest.mark.parametrize("file_name,expected", [
        ("package.json", "json"),
        ("meta.yaml", "yaml"),
        ("meta.yml", "yaml"),
        ("META.YML", "yaml"),
        ("metadata.txt", None),
        ("Makefile", None),
    ])
    def test_format_dispatch_by_extension(self, file_name, expected):
        assert metadata_format_for(file_name) == expected


class TestBuildEntry:

    def test_directory_key_cannot_rename_entry(self):
        entry = build_entry("project1", {"directory": "spoofed", "version": "9"})
        assert entry == {"directory": "project1", "version": "9"}

    def test_nested_values_are_copied_as_is(self):
        entry = build_entry("svc", {"deploy": {"region": "eu"}})
        assert entry == {"directory": "svc", "deploy": {"region": "eu"}}


class TestLoadMetadata:

    def test_missing_file_is_a_failure(self, tmp_path):
        outcome = load_metadata(tmp_path, "package.json")
        assert not outcome.ok
        assert "Metadata file not found" in outcome.reason

    def test_unsupported_extension_is_a_failure(self, tmp_path):
        (tmp_path / "metadata.txt").write_text("name=p1")
        outcome = load_metadata(tmp_path, "metadata.txt")
        assert not outcome.ok
        assert "Unsupported metadata file format: .txt" in outcome.reason

    def test_parse_error_is_a_failure(self, tmp_path):
        (tmp_path / "package.json").write_text("{not json")
        outcome = load_metadata(tmp_path, "package.json")
        assert not outcome.ok
        assert "Failed to parse metadata file" in outcome.reason

    def test_utf8_bom_is_stripped(self, tmp_path):
        (tmp_path / "package.json").write_bytes(b"\xef\xbb\xbf" + json.dumps({"name": "p1"}).encode())
        outcome = load_metadata(tmp_path, "package.json")
        assert outcome.ok
        assert outcome.value == {"name": "p1"}


class TestEnrichDirectories:
    """Every directory yields an entry, whatever happens to its metadata file."""

    def test_mixed_results(self, make_tree):
        root = make_tree({
            "good/meta.yml": "team: core\n",
            "broken/meta.yml": "team: [oops\n",
            "missing/": None,
            "spoofed/meta.yml": "directory: elsewhere\nowner: me\n",
        })

        entries = enrich_directories(root, ["good", "broken", "missing", "spoofed"], "meta.yml")

        assert entries == [
            {"directory": "good", "team": "core"},
            {"directory": "broken"},
            {"directory": "missing"},
            {"directory": "spoofed", "owner": "me"},
        ]

    def test_unsupported_extension_keeps_entry(self, make_tree):
        root = make_tree({"project1/metadata.txt": "name: p1"})
        assert enrich_directories(root, ["project1"], "metadata.txt") == [{"directory": "project1"}]
