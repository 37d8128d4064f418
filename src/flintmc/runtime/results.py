"""Outcome of a run."""

from pydantic import Field, NonNegativeInt

from flintmc.models import SchemaModel


class TestResult(SchemaModel):
    """Assertion tally of a single test."""

    __test__ = False

    name: str
    passed: NonNegativeInt = 0
    failed: NonNegativeInt = 0

    @property
    def success(self) -> bool:
        """Whether no assertion of the test failed."""
        return self.failed == 0


class RunSummary(SchemaModel):
    """Results of every test of a run, in test index order."""

    results: list[TestResult] = Field(default_factory=list)

    @property
    def passed(self) -> int:
        """Number of successful tests."""
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        """Number of tests with at least one failed assertion."""
        return len(self.results) - self.passed

    @property
    def success(self) -> bool:
        return all(result.success for result in self.results)
