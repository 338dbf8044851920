from __future__ import annotations

import pytest

from rscpatch.advisories import (
    DoSFollowUpAdvisory,
    FlightDeserializationAdvisory,
    React2ShellAdvisory,
    ServerFunctionDoSAdvisory,
    SourceExposureAdvisory,
)
from rscpatch.models.advisory import Severity

STABLE_14_NOTE = "14.3 canaries have no patched release; downgrade to 14.2.x stable"


@pytest.mark.unit
class TestReact2Shell:
    """Tests for CVE-2025-66478."""

    advisory = React2ShellAdvisory()

    def test_metadata(self) -> None:
        assert self.advisory.id == "CVE-2025-66478"
        assert self.advisory.severity is Severity.CRITICAL
        assert self.advisory.affects("next")
        assert self.advisory.affects("react-server-dom-turbopack")
        assert not self.advisory.affects("react")

    @pytest.mark.parametrize(
        "version,patched",
        [
            ("15.0.0", "15.0.5"),
            ("15.0.0-rc.1", "15.0.5"),
            ("15.1.8", "15.1.9"),
            ("15.2.5", "15.2.6"),
            ("15.3.4", "15.3.6"),
            ("15.4.7", "15.4.8"),
            ("15.5.6", "15.5.7"),
            ("16.0.6", "16.0.7"),
            ("15.6.0-canary.57", "15.6.0-canary.58"),
            ("16.1.0-canary.11", "16.1.0-canary.12"),
        ],
    )
    def test_vulnerable_next(self, version: str, patched: str) -> None:
        """Test affected Next.js releases and their patched versions."""
        assert self.advisory.is_vulnerable("next", version).vulnerable is True
        assert self.advisory.get_patched_version("next", version).recommended == patched

    @pytest.mark.parametrize(
        "version",
        [
            "14.2.33",
            "13.5.0",
            "15.3.6",
            "15.5.7",
            "16.0.7",
            "15.6.0",
            "16.1.0",
            "15.6.0-canary.58",
            "16.1.0-canary.12",
            "14.3.0-canary.76",
            "13.4.0-canary.3",
        ],
    )
    def test_safe_next(self, version: str) -> None:
        """Test releases that are not affected."""
        assert self.advisory.is_vulnerable("next", version).vulnerable is False

    def test_14_3_canary_downgrade(self) -> None:
        """Test 14.3 canaries recommend stable 14.2 with a canary alternative."""
        assert self.advisory.is_vulnerable("next", "14.3.0-canary.77").vulnerable is True

        patch = self.advisory.get_patched_version("next", "14.3.0-canary.80")

        assert patch.recommended == "14.2.33"
        assert patch.alternative == "15.6.0-canary.58"
        assert patch.note == STABLE_14_NOTE

    @pytest.mark.parametrize(
        "version,expected",
        [
            ("19.0.0", True),
            ("19.1.1", True),
            ("19.2.0", True),
            ("19.0.1", False),
            ("19.2.1", False),
            ("18.3.1", False),
            ("19.3.0", False),
        ],
    )
    def test_rsc_packages(self, version: str, expected: bool) -> None:
        assert self.advisory.is_vulnerable("react-server-dom-webpack", version).vulnerable is expected

    def test_rsc_patch(self) -> None:
        patch = self.advisory.get_patched_version("react-server-dom-parcel", "19.1.0")

        assert patch.recommended == "19.1.2"
        assert patch.alternative is None


@pytest.mark.unit
class TestServerFunctionDoS:
    """Tests for CVE-2025-55184."""

    advisory = ServerFunctionDoSAdvisory()

    @pytest.mark.parametrize(
        "version,patched",
        [
            ("13.3.0", "14.2.34"),
            ("13.5.6", "14.2.34"),
            ("14.2.33", "14.2.34"),
            ("14.2.0-canary.10", "14.2.34"),
            ("15.3.6", "15.3.7"),
            ("15.5.7", "15.5.8"),
            ("16.0.8", "16.0.9"),
            ("15.6.0-canary.58", "15.6.0-canary.59"),
            ("16.1.0-canary.17", "16.1.0-canary.18"),
        ],
    )
    def test_vulnerable_next(self, version: str, patched: str) -> None:
        """Test affected Next.js releases including the 13.x and 14.x lines."""
        assert self.advisory.is_vulnerable("next", version).vulnerable is True
        assert self.advisory.get_patched_version("next", version).recommended == patched

    @pytest.mark.parametrize(
        "version",
        ["12.3.4", "13.2.9", "14.2.34", "15.3.7", "16.0.9", "15.6.0", "16.1.0-canary.18"],
    )
    def test_safe_next(self, version: str) -> None:
        assert self.advisory.is_vulnerable("next", version).vulnerable is False

    def test_every_14_3_canary_is_affected(self) -> None:
        """Test even early 14.3 canaries are affected."""
        assert self.advisory.is_vulnerable("next", "14.3.0-canary.1").vulnerable is True

        patch = self.advisory.get_patched_version("next", "14.3.0-canary.1")

        assert patch.recommended == "14.2.34"
        assert patch.alternative == "15.6.0-canary.59"
        assert patch.note == STABLE_14_NOTE

    def test_rsc_packages(self) -> None:
        assert self.advisory.is_vulnerable("react-server-dom-webpack", "19.0.1").vulnerable is True
        assert self.advisory.is_vulnerable("react-server-dom-webpack", "19.0.2").vulnerable is False
        assert (
            self.advisory.get_patched_version("react-server-dom-webpack", "19.2.1").recommended
            == "19.2.2"
        )


@pytest.mark.unit
class TestSourceExposure:
    """Tests for CVE-2025-55183."""

    advisory = SourceExposureAdvisory()

    def test_severity(self) -> None:
        assert self.advisory.severity is Severity.MEDIUM

    @pytest.mark.parametrize(
        "version,patched",
        [
            ("15.0.5", "15.0.6"),
            ("15.3.6", "15.3.7"),
            ("16.0.8", "16.0.9"),
            ("15.6.0-canary.58", "15.6.0-canary.59"),
            ("16.1.0-canary.17", "16.1.0-canary.18"),
        ],
    )
    def test_vulnerable_next(self, version: str, patched: str) -> None:
        assert self.advisory.is_vulnerable("next", version).vulnerable is True
        assert self.advisory.get_patched_version("next", version).recommended == patched

    @pytest.mark.parametrize(
        "version",
        ["14.2.0", "13.5.6", "14.3.0-canary.80", "15.3.7", "16.0.9", "15.6.0"],
    )
    def test_safe_next(self, version: str) -> None:
        """Test the 14.x line, canaries included, is not affected."""
        assert self.advisory.is_vulnerable("next", version).vulnerable is False

    def test_rsc_packages(self) -> None:
        assert self.advisory.is_vulnerable("react-server-dom-turbopack", "19.2.1").vulnerable is True
        assert (
            self.advisory.get_patched_version("react-server-dom-turbopack", "19.1.2").recommended
            == "19.1.3"
        )


@pytest.mark.unit
class TestFlightDeserialization:
    """Tests for CVE-2025-55182."""

    advisory = FlightDeserializationAdvisory()

    def test_next_is_out_of_scope(self) -> None:
        """Test Next.js is covered by CVE-2025-66478 instead."""
        assert self.advisory.affects("next") is False
        assert self.advisory.is_vulnerable("next", "15.3.4").vulnerable is False

    @pytest.mark.parametrize(
        "version,patched",
        [("19.0.0", "19.0.1"), ("19.1.0", "19.1.2"), ("19.1.1", "19.1.2"), ("19.2.0", "19.2.1")],
    )
    def test_vulnerable(self, version: str, patched: str) -> None:
        assert self.advisory.is_vulnerable("react-server-dom-webpack", version).vulnerable is True
        assert (
            self.advisory.get_patched_version("react-server-dom-webpack", version).recommended
            == patched
        )

    @pytest.mark.parametrize("version", ["18.3.1", "19.0.1", "19.1.2", "19.2.1", "19.3.0"])
    def test_safe(self, version: str) -> None:
        assert self.advisory.is_vulnerable("react-server-dom-parcel", version).vulnerable is False


@pytest.mark.unit
class TestDoSFollowUp:
    """Tests for CVE-2025-67779."""

    advisory = DoSFollowUpAdvisory()

    @pytest.mark.parametrize(
        "version,patched",
        [
            ("13.3.0", "14.2.35"),
            ("14.2.34", "14.2.35"),
            ("15.0.6", "15.0.7"),
            ("15.3.7", "15.3.8"),
            ("15.5.8", "15.5.9"),
            ("16.0.9", "16.0.10"),
            ("15.6.0-canary.59", "15.6.0-canary.60"),
            ("16.1.0-canary.18", "16.1.0-canary.19"),
        ],
    )
    def test_vulnerable_next(self, version: str, patched: str) -> None:
        """Test releases patched for CVE-2025-55184 are still affected."""
        assert self.advisory.is_vulnerable("next", version).vulnerable is True
        assert self.advisory.get_patched_version("next", version).recommended == patched

    @pytest.mark.parametrize(
        "version",
        ["13.2.9", "14.2.35", "15.3.8", "15.5.9", "16.0.10", "15.6.0-canary.60", "16.1.0"],
    )
    def test_safe_next(self, version: str) -> None:
        assert self.advisory.is_vulnerable("next", version).vulnerable is False

    def test_14_3_canary(self) -> None:
        patch = self.advisory.get_patched_version("next", "14.3.0-canary.90")

        assert self.advisory.is_vulnerable("next", "14.3.0-canary.90").vulnerable is True
        assert patch.recommended == "14.2.35"
        assert patch.alternative == "15.6.0-canary.60"

    @pytest.mark.parametrize(
        "version,expected",
        [("19.0.2", True), ("19.1.3", True), ("19.2.2", True), ("19.2.3", False), ("18.2.0", False)],
    )
    def test_rsc_packages(self, version: str, expected: bool) -> None:
        assert self.advisory.is_vulnerable("react-server-dom-webpack", version).vulnerable is expected
