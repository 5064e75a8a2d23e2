"""Tests for manifest formats and source resolution."""

import pytest

from artsum.core.checksum import ChecksumAlgorithm, ChecksumMode, compute_bytes_checksum
from artsum.core.errors import ManifestFormatError, ManifestNotFoundError
from artsum.manifest import (
    DETECTION_PRIORITY,
    Manifest,
    ManifestFormat,
    ManifestSource,
    detect_format,
    get_parser,
    resolve_format,
)


def make_manifest(algorithm, mode=ChecksumMode.BINARY, version=None):
    """Build a manifest with awkward but legal paths."""
    paths = [
        "a.txt",
        "dir/b.txt",
        "with space.txt",
        "trailing space ",
        "back\\slash.txt",
        "new\nline.txt",
        ";leading-semicolon",
        "unicodé/файл.bin",
    ]
    return Manifest(
        version=version,
        artifacts={
            path: compute_bytes_checksum(path.encode("utf-8"), algorithm, mode)
            for path in paths
        },
    )


class TestRoundTrip:
    """parse(to_string(m)) should equal m for every format."""

    @pytest.mark.parametrize("format", list(ManifestFormat))
    @pytest.mark.parametrize("mode", list(ChecksumMode))
    def test_roundtrip(self, format, mode):
        """Manifests should survive serialization."""
        parser = get_parser(format)
        if mode is ChecksumMode.TEXT and not parser.supports_text_mode:
            pytest.skip(f"{format} only records binary checksums")
        algorithm = parser.algorithm or ChecksumAlgorithm.SHA512
        manifest = make_manifest(algorithm, mode)
        assert parser.parse_str(parser.to_string(manifest)) == manifest

    @pytest.mark.parametrize("format", list(ManifestFormat))
    def test_roundtrip_with_version(self, format):
        """Version headers should survive serialization."""
        parser = get_parser(format)
        algorithm = parser.algorithm or ChecksumAlgorithm.SHA512
        manifest = make_manifest(algorithm, version="1.2")
        parsed = parser.parse_str(parser.to_string(manifest))
        assert parsed.version == "1.2"
        assert parsed.artifacts == manifest.artifacts

    @pytest.mark.parametrize("format", list(ManifestFormat))
    def test_empty_manifest(self, format):
        """Empty manifests should round-trip."""
        parser = get_parser(format)
        assert parser.parse_str(parser.to_string(Manifest())) == Manifest()

    def test_mixed_algorithms_in_sfv(self):
        """The default format should carry a different algorithm per entry."""
        parser = get_parser(ManifestFormat.SFV)
        manifest = Manifest(
            artifacts={
                "a": compute_bytes_checksum(b"a", ChecksumAlgorithm.MD5),
                "b": compute_bytes_checksum(b"b", ChecksumAlgorithm.XXH128, ChecksumMode.TEXT),
                "c": compute_bytes_checksum(b"c", ChecksumAlgorithm.BLAKE2S256),
            }
        )
        assert parser.parse_str(parser.to_string(manifest)) == manifest

    def test_mixed_algorithms_in_json(self):
        """The JSON format should carry a different algorithm per entry."""
        parser = get_parser(ManifestFormat.JSON)
        manifest = Manifest(
            artifacts={
                "a": compute_bytes_checksum(b"a", ChecksumAlgorithm.CRC32),
                "b": compute_bytes_checksum(b"b", ChecksumAlgorithm.SHA256, ChecksumMode.TEXT),
            }
        )
        assert parser.parse_str(parser.to_string(manifest)) == manifest

    def test_serialization_is_deterministic(self):
        """Insertion order should not change the output."""
        parser = get_parser(ManifestFormat.SFV)
        a = compute_bytes_checksum(b"a")
        b = compute_bytes_checksum(b"b")
        first = parser.to_string(Manifest(artifacts={"a": a, "b": b}))
        second = parser.to_string(Manifest(artifacts={"b": b, "a": a}))
        assert first == second


class TestSFVParser:
    """Tests for the default format."""

    def test_line_format(self):
        """Lines should be '<path> <algorithm>:<mode>:<hex>'."""
        parser = get_parser(ManifestFormat.SFV)
        checksum = compute_bytes_checksum(b"hello")
        text = parser.to_string(Manifest(artifacts={"a.txt": checksum}))
        assert text == f"a.txt sha512:b:{checksum.hexdigest}\n"

    def test_reads_classic_sfv(self):
        """Bare CRC-32 values should be read as classic SFV entries."""
        parser = get_parser(ManifestFormat.SFV)
        manifest = parser.parse_str("; comment\r\nfile one.bin   1A2B3C4D\r\n")
        checksum = manifest.artifacts["file one.bin"]
        assert checksum.algorithm is ChecksumAlgorithm.CRC32
        assert checksum.hexdigest == "1a2b3c4d"

    def test_comments_and_blank_lines_ignored(self):
        """Comments and blank lines should be skipped."""
        parser = get_parser(ManifestFormat.SFV)
        token = str(compute_bytes_checksum(b"x"))
        manifest = parser.parse_str(f"; version 3\n\n; note\nx {token}\n")
        assert manifest.version == "3"
        assert list(manifest.artifacts) == ["x"]

    def test_malformed_line_reports_line_number(self):
        """Malformed lines should fail with their line number."""
        parser = get_parser(ManifestFormat.SFV)
        with pytest.raises(ManifestFormatError) as excinfo:
            parser.parse_str("; header\nnot-a-valid-line\n")
        assert excinfo.value.line_number == 2

    def test_bad_token_rejected(self):
        """Unparsable checksum tokens should be rejected."""
        parser = get_parser(ManifestFormat.SFV)
        with pytest.raises(ManifestFormatError):
            parser.parse_str("a.txt sha512:b:abcd\n")

    def test_duplicate_paths_rejected(self):
        """Duplicate paths should be rejected."""
        parser = get_parser(ManifestFormat.SFV)
        token = str(compute_bytes_checksum(b"x"))
        with pytest.raises(ManifestFormatError):
            parser.parse_str(f"a {token}\na {token}\n")


class TestSumFileParsers:
    """Tests for the coreutils-compatible formats."""

    def test_implied_algorithms(self):
        """Algorithm-locked formats should declare their algorithm."""
        assert get_parser(ManifestFormat.B2SUM).algorithm is ChecksumAlgorithm.BLAKE2B512
        assert get_parser(ManifestFormat.SHA512SUM).algorithm is ChecksumAlgorithm.SHA512
        assert get_parser(ManifestFormat.SFV).algorithm is None

    def test_default_filenames(self):
        """Each format should have a default filename."""
        assert get_parser(ManifestFormat.B2SUM).default_filename == "artsum.b2sum"
        assert get_parser(ManifestFormat.SFV).default_filename == "artsum.sfv"

    def test_gnu_line_format(self):
        """Binary entries should use the '*' flag."""
        parser = get_parser(ManifestFormat.SHA512SUM)
        checksum = compute_bytes_checksum(b"hello", ChecksumAlgorithm.SHA512)
        text = parser.to_string(Manifest(artifacts={"a.txt": checksum}))
        assert text == f"{checksum.hexdigest} *a.txt\n"

    def test_space_flag_reads_as_binary(self):
        """Lines written by stock sha512sum should hash raw bytes."""
        parser = get_parser(ManifestFormat.SHA512SUM)
        checksum = compute_bytes_checksum(b"x", ChecksumAlgorithm.SHA512)
        manifest = parser.parse_str(f"{checksum.hexdigest}  x\n")
        assert manifest.artifacts["x"] == checksum
        assert manifest.artifacts["x"].mode is ChecksumMode.BINARY

    def test_text_mode_not_serializable(self):
        """Text-mode entries cannot be written to coreutils dialects."""
        parser = get_parser(ManifestFormat.B2SUM)
        assert parser.supports_text_mode is False
        checksum = compute_bytes_checksum(b"x", ChecksumAlgorithm.BLAKE2B512, ChecksumMode.TEXT)
        with pytest.raises(ManifestFormatError):
            parser.to_string(Manifest(artifacts={"x": checksum}))

    def test_escaped_names(self):
        """Names with backslashes or newlines should use the escape prefix."""
        parser = get_parser(ManifestFormat.B2SUM)
        checksum = compute_bytes_checksum(b"x", ChecksumAlgorithm.BLAKE2B512)
        text = parser.to_string(Manifest(artifacts={"a\nb": checksum}))
        assert text.startswith("\\")
        assert "a\\nb" in text

    def test_reads_bsd_tagged_lines(self):
        """BSD tagged lines should be accepted."""
        parser = get_parser(ManifestFormat.SHA512SUM)
        checksum = compute_bytes_checksum(b"x", ChecksumAlgorithm.SHA512)
        manifest = parser.parse_str(f"SHA512 (dir/x.bin) = {checksum.hexdigest}\n")
        assert manifest.artifacts["dir/x.bin"] == checksum

    def test_rejects_mismatched_bsd_tag(self):
        """A BSD tag for another algorithm should be rejected."""
        parser = get_parser(ManifestFormat.B2SUM)
        checksum = compute_bytes_checksum(b"x", ChecksumAlgorithm.SHA512)
        with pytest.raises(ManifestFormatError):
            parser.parse_str(f"SHA512 (x) = {checksum.hexdigest}\n")

    def test_rejects_wrong_digest_width(self):
        """Digests of the wrong width should be rejected."""
        parser = get_parser(ManifestFormat.B2SUM)
        with pytest.raises(ManifestFormatError) as excinfo:
            parser.parse_str("abcdef *x\n")
        assert excinfo.value.line_number == 1

    def test_cannot_serialize_other_algorithm(self):
        """Serializing a foreign algorithm should fail."""
        parser = get_parser(ManifestFormat.B2SUM)
        manifest = Manifest(artifacts={"x": compute_bytes_checksum(b"x", ChecksumAlgorithm.MD5)})
        with pytest.raises(ManifestFormatError):
            parser.to_string(manifest)

    def test_uppercase_hex_accepted(self):
        """Hand-authored uppercase digests should parse."""
        parser = get_parser(ManifestFormat.SHA512SUM)
        checksum = compute_bytes_checksum(b"x", ChecksumAlgorithm.SHA512)
        manifest = parser.parse_str(f"{checksum.hexdigest.upper()} *x\n")
        assert manifest.artifacts["x"] == checksum


class TestJSONParser:
    """Tests for the JSON format."""

    def test_invalid_json(self):
        """Invalid JSON should raise a format error."""
        with pytest.raises(ManifestFormatError):
            get_parser(ManifestFormat.JSON).parse_str("{not json")

    def test_missing_digest(self):
        """Entries without a digest should be rejected."""
        with pytest.raises(ManifestFormatError):
            get_parser(ManifestFormat.JSON).parse_str(
                '{"artifacts": {"a": {"algorithm": "sha512"}}}'
            )

    def test_sorted_keys(self):
        """Output should have sorted keys."""
        parser = get_parser(ManifestFormat.JSON)
        text = parser.to_string(
            Manifest(artifacts={"b": compute_bytes_checksum(b"b"), "a": compute_bytes_checksum(b"a")})
        )
        assert text.index('"a"') < text.index('"b"')


class TestFormatDetection:
    """Tests for filename patterns and the registry."""

    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("artsum.sfv", ManifestFormat.SFV),
            ("release.sfv", ManifestFormat.SFV),
            ("artsum.json", ManifestFormat.JSON),
            ("release.artsum.json", ManifestFormat.JSON),
            ("artsum.b2sum", ManifestFormat.B2SUM),
            ("files.b2", ManifestFormat.B2SUM),
            ("B2SUMS", ManifestFormat.B2SUM),
            ("artsum.sha512sum", ManifestFormat.SHA512SUM),
            ("files.sha512", ManifestFormat.SHA512SUM),
            ("SHA512SUMS", ManifestFormat.SHA512SUM),
        ],
    )
    def test_detect_format(self, filename, expected):
        """Filenames should map to their format."""
        assert detect_format(filename) is expected

    @pytest.mark.parametrize("filename", ["data.json", "notes.txt", "archive.b2sum.bak"])
    def test_unrecognized_names(self, filename):
        """Unrelated files should not match any format."""
        assert detect_format(filename) is None

    def test_resolve_format(self):
        """Format names should resolve case-insensitively."""
        assert resolve_format("B2SUM") is ManifestFormat.B2SUM
        assert resolve_format(None) is ManifestFormat.SFV
        with pytest.raises(ValueError):
            resolve_format("md5sum")

    def test_priority_covers_all_formats(self):
        """Every format should appear once in the detection priority."""
        assert sorted(DETECTION_PRIORITY) == sorted(ManifestFormat)


class TestManifestSource:
    """Tests for manifest source resolution."""

    def test_scan_directory(self, tmp_path):
        """A directory scan should find a matching manifest."""
        (tmp_path / "data.bin").write_bytes(b"x")
        (tmp_path / "files.b2sum").write_text("")
        source = ManifestSource.from_path(tmp_path)
        assert source == ManifestSource(tmp_path / "files.b2sum", ManifestFormat.B2SUM)

    def test_priority_breaks_ties(self, tmp_path):
        """When several formats match, the priority order should decide."""
        (tmp_path / "a.sha512").write_text("")
        (tmp_path / "z.sfv").write_text("")
        (tmp_path / "m.b2sum").write_text("")
        source = ManifestSource.from_path(tmp_path)
        assert source.format is ManifestFormat.SFV
        assert source.filepath.name == "z.sfv"

    def test_names_sorted_within_format(self, tmp_path):
        """Within one format, the first name in sorted order should win."""
        (tmp_path / "b.b2").write_text("")
        (tmp_path / "a.b2sum").write_text("")
        source = ManifestSource.from_path(tmp_path)
        assert source.filepath.name == "a.b2sum"

    def test_subdirectories_not_matched(self, tmp_path):
        """Only regular files in the directory should be considered."""
        (tmp_path / "nested.sfv").mkdir()
        assert ManifestSource.from_path(tmp_path) is None

    def test_explicit_format_for_directory(self, tmp_path):
        """An explicit format should restrict the scan."""
        (tmp_path / "artsum.sfv").write_text("")
        (tmp_path / "SHA512SUMS").write_text("")
        source = ManifestSource.from_path(tmp_path, "sha512sum")
        assert source.filepath.name == "SHA512SUMS"

    def test_unrecognized_file_uses_default(self, tmp_path):
        """An explicit file with an unknown name should use the default format."""
        path = tmp_path / "checksums.txt"
        path.write_text("")
        assert ManifestSource.from_path(path).format is ManifestFormat.SFV

    def test_missing_path(self, tmp_path):
        """A missing path should resolve to None."""
        assert ManifestSource.from_path(tmp_path / "missing.sfv") is None

    def test_parse_missing_file(self, tmp_path):
        """Parsing a file that vanished should raise ManifestNotFoundError."""
        source = ManifestSource(tmp_path / "gone.sfv", ManifestFormat.SFV)
        with pytest.raises(ManifestNotFoundError):
            source.parser().parse(source)

    def test_parse_from_file(self, tmp_path):
        """Parsers should read manifests from disk."""
        parser = get_parser(ManifestFormat.B2SUM)
        manifest = make_manifest(ChecksumAlgorithm.BLAKE2B512)
        path = tmp_path / "artsum.b2sum"
        path.write_text(parser.to_string(manifest), encoding="utf-8")
        source = ManifestSource.from_path(path)
        assert source.parser().parse(source) == manifest
