"""Result document model for xcresulttool test-results output.

The summary document and the tests document are decoded into frozen
dataclasses. Nodes own their children as tuples, so a loaded tree can be
shared freely across the resolver, aggregator and presentation layer without
any of them being able to mutate it.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

TEST_CASE = "Test Case"
TEST_SUITE = "Test Suite"
TEST_TARGET = "Test Target"
FAILURE_MESSAGE = "Failure Message"


class ResultStatus(Enum):
    """Normalized outcome of a node's free-text result string."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    UNKNOWN = "unknown"


def classify_result(result: str) -> ResultStatus:
    """Classify a result string by case-insensitive substring match.

    "pass"/"success" wins over "fail", which wins over "skip".
    """
    lowered = (result or "").lower()
    if "pass" in lowered or "success" in lowered:
        return ResultStatus.PASSED
    if "fail" in lowered:
        return ResultStatus.FAILED
    if "skip" in lowered:
        return ResultStatus.SKIPPED
    return ResultStatus.UNKNOWN


def coerce_float(value: Any, default: float = 0.0) -> float:
    """Decode a number that may be encoded as a JSON number or a numeric string.

    Values that are neither fall back to ``default``.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def _optional_float(data: dict[str, Any], key: str) -> Optional[float]:
    if key not in data or data[key] is None:
        return None
    return coerce_float(data[key])


def _require(data: dict[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise KeyError(f"{where}: missing required field '{key}'")
    return data[key]


def _as_int(value: Any) -> int:
    number = coerce_float(value)
    if math.isnan(number) or math.isinf(number):
        return 0
    return int(number)


@dataclass(frozen=True)
class TestNode:
    """A node in the test result tree."""

    __test__ = False

    name: str
    node_type: str
    result: str
    node_identifier: Optional[str] = None
    node_identifier_url: Optional[str] = None
    duration: Optional[str] = None
    duration_in_seconds: Optional[float] = None
    children: tuple[TestNode, ...] = ()

    @property
    def status(self) -> ResultStatus:
        return classify_result(self.result)

    @property
    def is_test_case(self) -> bool:
        return self.node_type == TEST_CASE

    @property
    def is_group(self) -> bool:
        return self.node_type in (TEST_SUITE, TEST_TARGET)

    @property
    def failed(self) -> bool:
        return self.status == ResultStatus.FAILED

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestNode:
        """Create a TestNode (and its subtree) from decoded JSON.

        Builds iteratively so deeply nested documents cannot exhaust the
        interpreter stack.
        """
        # Post-order construction: a node is built once all its children are.
        built: dict[int, TestNode] = {}
        stack: list[tuple[dict[str, Any], bool]] = [(data, False)]
        while stack:
            raw, children_done = stack.pop()
            if not isinstance(raw, dict):
                raise TypeError(f"test node must be an object, got {type(raw).__name__}")
            raw_children = raw.get("children") or []
            if not isinstance(raw_children, list):
                raise TypeError("test node 'children' must be a list")
            if not children_done:
                stack.append((raw, True))
                for child in reversed(raw_children):
                    stack.append((child, False))
                continue
            built[id(raw)] = cls(
                name=_require(raw, "name", "test node"),
                node_type=_require(raw, "nodeType", "test node"),
                result=_require(raw, "result", "test node"),
                node_identifier=raw.get("nodeIdentifier"),
                node_identifier_url=raw.get("nodeIdentifierURL"),
                duration=raw.get("duration"),
                duration_in_seconds=_optional_float(raw, "durationInSeconds"),
                children=tuple(built.pop(id(child)) for child in raw_children),
            )
        return built[id(data)]


@dataclass(frozen=True)
class Device:
    """A run destination, passed through for display."""

    device_id: str = ""
    device_name: str = ""
    model_name: str = ""
    platform: str = ""
    os_version: str = ""
    os_build_number: str = ""
    architecture: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Device:
        return cls(
            device_id=data.get("deviceId", ""),
            device_name=data.get("deviceName", ""),
            model_name=data.get("modelName", ""),
            platform=data.get("platform", ""),
            os_version=data.get("osVersion", ""),
            os_build_number=data.get("osBuildNumber", ""),
            architecture=data.get("architecture", ""),
        )


@dataclass(frozen=True)
class TestPlanConfiguration:
    __test__ = False

    configuration_id: str = ""
    configuration_name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestPlanConfiguration:
        return cls(
            configuration_id=data.get("configurationId", ""),
            configuration_name=data.get("configurationName", ""),
        )


@dataclass(frozen=True)
class DeviceConfiguration:
    """Per-device counts from the summary document."""

    device: Device
    test_plan_configuration: TestPlanConfiguration
    passed_tests: int = 0
    failed_tests: int = 0
    skipped_tests: int = 0
    expected_failures: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeviceConfiguration:
        return cls(
            device=Device.from_dict(data.get("device") or {}),
            test_plan_configuration=TestPlanConfiguration.from_dict(
                data.get("testPlanConfiguration") or {}
            ),
            passed_tests=_as_int(data.get("passedTests", 0)),
            failed_tests=_as_int(data.get("failedTests", 0)),
            skipped_tests=_as_int(data.get("skippedTests", 0)),
            expected_failures=_as_int(data.get("expectedFailures", 0)),
        )


@dataclass(frozen=True)
class TestFailure:
    """A failure record from the summary document."""

    __test__ = False

    test_identifier_string: str
    failure_text: str
    target_name: str = ""
    test_name: str = ""
    test_identifier: Optional[int] = None
    test_identifier_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestFailure:
        test_identifier = data.get("testIdentifier")
        return cls(
            test_identifier_string=_require(data, "testIdentifierString", "test failure"),
            failure_text=_require(data, "failureText", "test failure"),
            target_name=data.get("targetName", ""),
            test_name=data.get("testName", ""),
            test_identifier=_as_int(test_identifier) if test_identifier is not None else None,
            test_identifier_url=data.get("testIdentifierURL"),
        )


@dataclass(frozen=True)
class TestResultsSummary:
    """Document-level statistics and failures."""

    __test__ = False

    result: str
    total_test_count: int
    passed_tests: int
    failed_tests: int
    skipped_tests: int
    expected_failures: int = 0
    title: str = ""
    environment_description: str = ""
    start_time: float = 0.0
    finish_time: float = 0.0
    test_failures: tuple[TestFailure, ...] = ()
    devices_and_configurations: tuple[DeviceConfiguration, ...] = ()

    @property
    def duration_seconds(self) -> float:
        return self.finish_time - self.start_time

    @property
    def status(self) -> ResultStatus:
        return classify_result(self.result)

    @property
    def pass_rate(self) -> float:
        if self.total_test_count <= 0:
            return 0.0
        return self.passed_tests / self.total_test_count * 100

    def failure_for(self, test_identifier: Optional[str]) -> Optional[TestFailure]:
        """Return the first failure recorded for a test identifier, in document order."""
        if test_identifier is None:
            return None
        for failure in self.test_failures:
            if failure.test_identifier_string == test_identifier:
                return failure
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestResultsSummary:
        where = "summary"
        return cls(
            result=_require(data, "result", where),
            total_test_count=_as_int(_require(data, "totalTestCount", where)),
            passed_tests=_as_int(_require(data, "passedTests", where)),
            failed_tests=_as_int(_require(data, "failedTests", where)),
            skipped_tests=_as_int(_require(data, "skippedTests", where)),
            expected_failures=_as_int(data.get("expectedFailures", 0)),
            title=data.get("title", ""),
            environment_description=data.get("environmentDescription", ""),
            start_time=coerce_float(data.get("startTime")),
            finish_time=coerce_float(data.get("finishTime")),
            test_failures=tuple(
                TestFailure.from_dict(f) for f in data.get("testFailures") or []
            ),
            devices_and_configurations=tuple(
                DeviceConfiguration.from_dict(d)
                for d in data.get("devicesAndConfigurations") or []
            ),
        )


@dataclass(frozen=True)
class TestResults:
    """The tests document: a forest of root test nodes."""

    __test__ = False

    test_nodes: tuple[TestNode, ...] = ()
    devices: tuple[Device, ...] = ()
    test_plan_configurations: tuple[TestPlanConfiguration, ...] = field(default=())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestResults:
        return cls(
            test_nodes=tuple(
                TestNode.from_dict(n) for n in _require(data, "testNodes", "tests")
            ),
            devices=tuple(Device.from_dict(d) for d in data.get("devices") or []),
            test_plan_configurations=tuple(
                TestPlanConfiguration.from_dict(c)
                for c in data.get("testPlanConfigurations") or []
            ),
        )
