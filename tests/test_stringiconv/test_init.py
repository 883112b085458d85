"""Tests for the package's public surface."""

import stringiconv


class TestPackage:
    """Test package metadata and exports."""

    def test_version_info(self):
        """Test version metadata."""
        assert stringiconv.__version__ == "0.1.0"
        assert stringiconv.__author__ == "stringiconv Team"

    def test_all_exports_exist(self):
        """Test that every name in __all__ is importable."""
        for name in stringiconv.__all__:
            assert hasattr(stringiconv, name), name

    def test_top_level_convert(self):
        """Test the level 1 functions from the package root."""
        assert stringiconv.convert(b"\xa1\xe7", "UTF-8", "EUC-JP") == "∞".encode("utf-8")
        assert stringiconv.decode(b"\xa1\xe7", "EUC-JP") == "∞"
