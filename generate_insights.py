#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Engineering Insights Reporting System - Jira and GitHub Productivity Metrics

This script queries a Jira project and every non-archived GitHub repository
visible to the configured token, and generates a portfolio report including:
- Project-wide ticket metrics (cycle time, defect ratio, workload balance)
- Per-repository code metrics (merge time, review time, build failures)
- Portfolio averages and totals of numeric insights across repositories
- Outputs in JSON and Markdown formats

Architecture:
- Single script with modular internal structure
- Configuration-driven with template + project overrides
- JSON as canonical data source, Markdown as a view
- Flat catalog of insight operations sharing common reduction rules
- Per-operation error isolation with optional per-repository concurrency

Schema Version: 1.0.0
"""

import argparse
import concurrent.futures
import copy
import datetime
import hashlib
import json
import logging
import os
import re
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

try:
    import yaml  # type: ignore
except ImportError:
    print(
        "ERROR: PyYAML is required. Install with: pip install PyYAML", file=sys.stderr
    )
    sys.exit(1)

try:
    import httpx  # type: ignore
except ImportError:
    print("ERROR: httpx is required. Install with: pip install httpx", file=sys.stderr)
    sys.exit(1)

# =============================================================================
# CONSTANTS AND SCHEMA DEFINITIONS
# =============================================================================

SCRIPT_VERSION = "1.0.0"
SCHEMA_VERSION = "1.0.0"
DEFAULT_CONFIG_DIR = "configuration"
DEFAULT_OUTPUT_DIR = "reports"
USER_AGENT = f"engineering-insights/{SCRIPT_VERSION}"

SOURCE_JIRA = "Jira"
SOURCE_GITHUB = "GitHub"

DEFAULT_PAGE_SIZE = 50
GITHUB_PAGE_SIZE = 100
UNASSIGNED = "Unassigned"

# JSON Schema structure (conceptual - used for validation and documentation)
EXPECTED_JSON_SCHEMA = {
    "schema_version": str,
    "generated_at": str,  # UTC ISO8601
    "project": str,
    "config_digest": str,  # SHA256 of resolved config
    "script_version": str,
    "project_insights": list,  # [insight_record_dict, ...] (Jira, repo=None)
    "repositories": list,  # [{"repo": str, "results": [insight_record_dict, ...]}, ...]
    "averages": dict,  # {insight_kind: float}
    "totals": dict,  # {insight_kind: float}
    "errors": list,  # [{"repo": str, "insight": str, "error": str, "category": str}, ...]
    "api_statistics": dict,
}

# Serialization settings shared by every JSON writer
JSON_DUMP_OPTIONS = MappingProxyType({"indent": 2, "ensure_ascii": False})

# =============================================================================
# INSIGHT CATALOG
# =============================================================================

INSIGHT_CATALOG = MappingProxyType(
    {
        "Velocity": "Story points completed per sprint",
        "CycleTime": "Time from work start to feature delivery",
        "DefectRatio": "Defects versus completed tasks",
        "SprintBurndown": "Remaining work over sprint timeline",
        "IssueThroughput": "Issues completed in a period",
        "LeadTime": "Time from issue creation to completion",
        "AverageLeadTime": "Time from issue creation to completion on an average",
        "PullRequestMergeTime": "Time from PR creation to merge",
        "CodeReviewTime": "Time spent in PR review",
        "PRSizeLinesChanged": "Lines added/removed per PR",
        "CommitFrequency": "Commits by repo/dev over time",
        "BranchActivity": "Active branches and merges",
        "IssueAging": "Time issues remain in status",
        "ReopenedIssues": "Count of reopened issues",
        "BlockedIssues": "Flagged/blocked issues",
        "TestCoverageTrends": "Coverage over time",
        "TeamWorkloadBalance": "Issues assigned per engineer",
        "IncidentFrequency": "Number of bugs/incidents",
        "DeploymentFrequency": "Frequency of deployments/releases",
        "TimeToRestoreService": "Incident resolution duration",
        "CustomerIssueResolutionTimes": "Customer tickets -- time to resolve",
        "CrossTeamBottlenecks": "Blocked issues due to dependencies",
        "MeetingsVsCodingTime": "Balance of meetings and coding",
        "UntriagedIssues": "Created but unassigned issues",
        "CodeChurnRate": "Lines added/deleted, revisited",
        "CodeOwnershipMetrics": "Main contributors to files",
        "PRReviewComments": "PR review comments cadence",
        "AutomationCoverage": "Status of CI/CD automation",
        "BuildFailuresFrequency": "CI build failures frequency",
        "SprintGoalCompletionRatio": "Ratio of planned vs completed goals",
        "HighPriorityIssueAging": "Aging of critical/urgent issues",
        "BlockedPRs": "PRs stalled due to unresolved reviews",
        "FeatureUsageFeedbackLoops": "Link customer feedback to GitHub/Jira issues",
        "CodeReviewParticipation": "Number of reviewers per PR",
        "DeveloperActivityHeatmap": "Commits/PRs by time",
        "EpicProgressTracking": "Progress on epics and stories",
        "SecurityVulnerabilities": "Open/closed security issues",
        "RefactoringEfforts": "Labeled refactoring changes/issues",
        "SprintPredictability": "Delivered vs committed in sprint",
        "AvgTimeInCodeReview": "PR time between review request and merge",
        "ContributorOnboardingTime": "Time to productivity for new contributor",
        "FeatureToggleUsage": "Usage of feature toggles via issues/PR meta",
        "DocumentationCoverage": "PRs/issues relating to docs",
        "CodeMergeConflictsFrequency": "Merge conflict indicator on PRs",
        "TestAutomationFailures": "Failing automation runs",
        "ReleaseNotesCompleteness": "PRs/issues with release note attached",
        "DependencyUpdatesFrequency": "How often dependencies are updated",
        "TechnicalDebtIssues": "Issues tagged as tech debt",
        "DeveloperSatisfactionProxy": "Developer feedback via incidents/surveys",
        "CrossRepoWorkCoordination": "Linked PRs/Jira across repositories",
        "TeamCollaborationEfficiency": "Resolution speed, comments frequency",
    }
)


def describe_insight_kind(kind: str) -> str:
    """Return the catalog description for an insight kind, or the kind itself."""
    return INSIGHT_CATALOG.get(kind, kind)


# =============================================================================
# API STATISTICS TRACKING
# =============================================================================


class APIStatistics:
    """Track statistics for external API calls (Jira, GitHub)."""

    API_LABELS = {"jira": "Jira", "github": "GitHub"}

    def __init__(self):
        """Initialize statistics tracker."""
        self.stats: dict[str, dict[str, Any]] = {
            api_type: {"success": 0, "errors": {}} for api_type in self.API_LABELS
        }
        self._lock = threading.Lock()

    def record_success(self, api_type: str) -> None:
        """Record a successful API call."""
        if api_type in self.stats:
            with self._lock:
                self.stats[api_type]["success"] += 1

    def record_error(self, api_type: str, status_code: int) -> None:
        """Record an API error by status code."""
        if api_type in self.stats:
            with self._lock:
                errors = self.stats[api_type]["errors"]
                errors[status_code] = errors.get(status_code, 0) + 1

    def record_exception(self, api_type: str, error_type: str = "exception") -> None:
        """Record an API exception (non-HTTP error)."""
        if api_type in self.stats:
            with self._lock:
                errors = self.stats[api_type]["errors"]
                errors[error_type] = errors.get(error_type, 0) + 1

    def get_total_calls(self, api_type: str) -> int:
        """Get total number of API calls (success + errors)."""
        if api_type not in self.stats:
            return 0
        return self.stats[api_type]["success"] + self.get_total_errors(api_type)

    def get_total_errors(self, api_type: str) -> int:
        """Get total number of errors for an API."""
        if api_type not in self.stats:
            return 0
        return sum(self.stats[api_type]["errors"].values())

    def has_errors(self) -> bool:
        """Check if any API has errors."""
        return any(self.get_total_errors(api_type) > 0 for api_type in self.stats)

    def to_dict(self) -> dict[str, Any]:
        """Snapshot of the counters for the JSON report."""
        with self._lock:
            return {
                api_type: {
                    "success": data["success"],
                    "errors": {str(code): count for code, count in data["errors"].items()},
                }
                for api_type, data in self.stats.items()
            }

    def format_console_output(self) -> str:
        """Format statistics for console output."""
        lines = []

        for api_type, label in self.API_LABELS.items():
            if self.get_total_calls(api_type) == 0:
                continue
            lines.append(f"\n📊 {label} API Statistics:")
            lines.append(f"   ✅ Successful calls: {self.stats[api_type]['success']}")
            total_errors = self.get_total_errors(api_type)
            if total_errors > 0:
                lines.append(f"   ❌ Failed calls: {total_errors}")
                for code, count in sorted(
                    self.stats[api_type]["errors"].items(), key=lambda x: str(x[0])
                ):
                    lines.append(f"      • Error {code}: {count}")

        return "\n".join(lines) if lines else ""

    def write_to_step_summary(self) -> None:
        """Write statistics to GitHub Step Summary."""
        step_summary_file = os.environ.get("GITHUB_STEP_SUMMARY")
        if not step_summary_file:
            return

        try:
            with open(step_summary_file, "a") as f:
                f.write("\n## 📊 External API Statistics\n\n")
                for api_type, label in self.API_LABELS.items():
                    if self.get_total_calls(api_type) == 0:
                        continue
                    f.write(f"### {label} API\n\n")
                    f.write(f"- ✅ Successful calls: {self.stats[api_type]['success']}\n")
                    total_errors = self.get_total_errors(api_type)
                    if total_errors > 0:
                        f.write(f"- ❌ Failed calls: {total_errors}\n")
                        f.write("\n**Error Breakdown:**\n\n")
                        for code, count in sorted(
                            self.stats[api_type]["errors"].items(), key=lambda x: str(x[0])
                        ):
                            f.write(f"- `{code}`: {count} call(s)\n")
                    f.write("\n")
        except OSError as e:
            logging.debug(f"Could not write API statistics to GITHUB_STEP_SUMMARY: {e}")


# Global statistics tracker
api_stats = APIStatistics()


# =============================================================================
# LOGGING SETUP
# =============================================================================


def setup_logging(
    level: str = "INFO", include_timestamps: bool = True
) -> logging.Logger:
    """Configure logging with structured format."""
    log_format = "[%(levelname)s]"
    if include_timestamps:
        log_format = "[%(asctime)s] " + log_format
    log_format += " %(message)s"

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S UTC" if include_timestamps else None,
    )

    logger = logging.getLogger("insights_reporter")
    return logger


# =============================================================================
# CONFIGURATION LOADING AND DEEP MERGE
# =============================================================================


def deep_merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two dictionaries, with override taking precedence."""
    result = copy.deepcopy(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge_dicts(result[key], value)
        else:
            result[key] = copy.deepcopy(value)

    return result


def load_yaml_config(config_path: Path) -> Dict[str, Any]:
    """Load and parse a YAML configuration file."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}")


def load_configuration(config_dir: Path, project: str) -> dict[str, Any]:
    """
    Load configuration with template + project override merge strategy.

    Args:
        config_dir: Directory containing configuration files
        project: Project name for override file

    Returns:
        Merged configuration dictionary
    """
    template_path = config_dir / "template.config"
    project_config_name = f"{project}.config"

    # Exact match first, then case-insensitive
    project_path = None
    exact_match = config_dir / project_config_name
    if exact_match.exists():
        project_path = exact_match
    else:
        for config_file in config_dir.glob("*.config"):
            if config_file.name.lower() == project_config_name.lower():
                project_path = config_file
                print(
                    f"📝 Project name '{project}' matched config file '{config_file.name}'",
                    file=sys.stderr,
                )
                break

    if not project_path:
        print(
            f"⚠️  No project-specific config found for '{project}' - using template defaults only",
            file=sys.stderr,
        )

    if not template_path.exists():
        raise FileNotFoundError(f"Template configuration not found: {template_path}")

    print(f"📝 Loading template config: {template_path}", file=sys.stderr)
    template_config = load_yaml_config(template_path)

    project_config = {}
    if project_path:
        print(f"📝 Loading project config: {project_path}", file=sys.stderr)
        project_config = load_yaml_config(project_path)

    merged_config = deep_merge_dicts(template_config, project_config)
    merged_config["project"] = project

    return merged_config


def compute_config_digest(config: Dict[str, Any]) -> str:
    """Compute SHA256 digest of configuration for reproducibility tracking."""
    config_json = json.dumps(config, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(config_json.encode("utf-8")).hexdigest()


def load_credentials(environ: Optional[dict[str, str]] = None) -> dict[str, str]:
    """Read Jira and GitHub credentials from the environment."""
    env = os.environ if environ is None else environ
    return {
        "jira_email": env.get("JIRA_EMAIL", "").strip(),
        "jira_token": env.get("JIRA_TOKEN", "").strip(),
        "github_token": env.get("GITHUB_TOKEN", "").strip(),
    }


# =============================================================================
# TIMESTAMP AND TEXT HELPERS
# =============================================================================


def parse_timestamp(value: Optional[str]) -> Optional[datetime.datetime]:
    """Parse a Jira or GitHub ISO 8601 timestamp into an aware UTC datetime."""
    if not value:
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    elif len(text) > 5 and text[-5] in "+-" and text[-4:].isdigit():
        # Jira writes offsets without a colon: 2024-05-01T10:00:00.000+0000
        text = text[:-2] + ":" + text[-2:]

    parsed = datetime.datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.astimezone(datetime.timezone.utc)


def hours_between(start: datetime.datetime, end: datetime.datetime) -> float:
    return (end - start).total_seconds() / 3600.0


def days_between(start: datetime.datetime, end: datetime.datetime) -> float:
    return (end - start).total_seconds() / 86400.0


ISSUE_KEY_PATTERN = re.compile(r"\b[A-Z]+-\d+\b")


def extract_issue_keys(text: Optional[str]) -> set[str]:
    """Extract Jira issue keys (e.g. ABC-123) referenced in free text."""
    if not text:
        return set()
    return set(ISSUE_KEY_PATTERN.findall(text))


# =============================================================================
# JIRA CHANGELOG INSPECTION
# =============================================================================


def status_transition_times(
    changelog: Optional[dict[str, Any]], *statuses: str
) -> list[datetime.datetime]:
    """
    Collect the times an issue transitioned into any of the given statuses.

    Status names are compared case-insensitively. The result is sorted
    chronologically; histories without a parseable timestamp are skipped.
    """
    wanted = {status.lower() for status in statuses}
    times = []

    for history in (changelog or {}).get("histories", []):
        changed_at = parse_timestamp(history.get("created"))
        if changed_at is None:
            continue
        for item in history.get("items", []):
            if item.get("field") != "status":
                continue
            if (item.get("toString") or "").lower() in wanted:
                times.append(changed_at)

    return sorted(times)


def first_status_transition_time(
    changelog: Optional[dict[str, Any]], *statuses: str
) -> Optional[datetime.datetime]:
    """Return the earliest transition into any of the statuses, or None."""
    times = status_transition_times(changelog, *statuses)
    return times[0] if times else None


# =============================================================================
# INSIGHT DATA MODEL
# =============================================================================


@dataclass(frozen=True)
class UnsupportedMetric:
    """Value marker for insights that need data this tool does not collect."""

    reason: str

    def __str__(self) -> str:
        return self.reason


def is_numeric_value(value: Any) -> bool:
    """True for int/float insight values; booleans are not metrics."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def serialize_value(value: Any) -> Any:
    """Convert an insight value into JSON-compatible data, keeping its shape."""
    if isinstance(value, UnsupportedMetric):
        return value.reason
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(serialize_value(k)): serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [serialize_value(v) for v in value]
    return value


@dataclass
class InsightRecord:
    """
    One computed insight.

    ``kind`` and ``source`` are required. Only ``repo`` may change after
    construction, so a batch of results can be stamped with the repository
    that produced them.
    """

    kind: str
    value: Any
    source: str
    repo: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.kind:
            raise ValueError("Insight kind is required")
        if not self.source:
            raise ValueError(f"Insight source is required for {self.kind}")

    def __setattr__(self, name: str, value: Any) -> None:
        if name != "repo" and name in self.__dict__:
            raise AttributeError(f"InsightRecord.{name} is read-only")
        super().__setattr__(name, value)

    @property
    def description(self) -> str:
        return describe_insight_kind(self.kind)

    @property
    def is_supported(self) -> bool:
        return not isinstance(self.value, UnsupportedMetric)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "description": self.description,
            "value": serialize_value(self.value),
            "source": self.source,
            "repo": self.repo,
            "supported": self.is_supported,
        }


def stamp_repo(records: Iterable[InsightRecord], repo: str) -> list[InsightRecord]:
    """Set the repository label on every record; safe to repeat."""
    stamped = list(records)
    for record in stamped:
        record.repo = repo
    return stamped


@dataclass
class RepoInsightsSummary:
    """All insight records collected for one repository."""

    repo: str
    results: list[InsightRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.repo:
            raise ValueError("Repository name is required for a summary")

    def add(self, record: InsightRecord) -> None:
        self.results.append(record)

    def to_dict(self) -> dict[str, Any]:
        return {
            "repo": self.repo,
            "results": [record.to_dict() for record in self.results],
        }


# =============================================================================
# PORTFOLIO AGGREGATION
# =============================================================================


def compute_portfolio_aggregates(
    records: Iterable[InsightRecord],
) -> Tuple[dict[str, float], dict[str, float]]:
    """
    Reduce insight records into per-kind averages and totals.

    Only numeric values take part. Text, mappings, lists, None and
    unsupported markers are skipped, and a kind with no numeric records is
    left out of both maps rather than reported as zero.
    """
    grouped: dict[str, list[float]] = {}
    for record in records:
        if is_numeric_value(record.value):
            grouped.setdefault(record.kind, []).append(float(record.value))

    averages = {kind: sum(values) / len(values) for kind, values in grouped.items()}
    totals = {kind: sum(values) for kind, values in grouped.items()}
    return averages, totals


@dataclass
class PortfolioInsights:
    """Cross-repository view over a set of repository summaries."""

    summaries: list[RepoInsightsSummary] = field(default_factory=list)

    def all_results(self) -> list[InsightRecord]:
        return [record for summary in self.summaries for record in summary.results]

    @property
    def averages(self) -> dict[str, float]:
        return compute_portfolio_aggregates(self.all_results())[0]

    @property
    def totals(self) -> dict[str, float]:
        return compute_portfolio_aggregates(self.all_results())[1]

    def to_dict(self) -> dict[str, Any]:
        averages, totals = compute_portfolio_aggregates(self.all_results())
        return {
            "repositories": [summary.to_dict() for summary in self.summaries],
            "averages": averages,
            "totals": totals,
        }


# =============================================================================
# REDUCTION RULES SHARED BY INSIGHT OPERATIONS
# =============================================================================


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide two counts; a zero denominator yields 0."""
    if not denominator:
        return 0
    return numerator / denominator


def mean_or_none(values: Iterable[float]) -> Optional[float]:
    """Arithmetic mean, or None when there is nothing to measure."""
    collected = list(values)
    if not collected:
        return None
    return sum(collected) / len(collected)


def count_by(items: Iterable[Any], key_fn: Callable[[Any], str]) -> dict[str, int]:
    """Count items per derived key, keeping first-seen key order."""
    counts: dict[str, int] = {}
    for item in items:
        key = key_fn(item)
        counts[key] = counts.get(key, 0) + 1
    return counts


# =============================================================================
# REMOTE API ERRORS
# =============================================================================


class InsightAPIError(Exception):
    """Base exception for failed remote calls while collecting insights."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class JiraAPIError(InsightAPIError):
    """Raised when the Jira API returns a non-success response."""

    pass


class GitHubAPIError(InsightAPIError):
    """Raised when the GitHub API returns a non-success response."""

    pass


class GitHubNotFoundError(GitHubAPIError):
    """Raised when a GitHub resource does not exist (HTTP 404)."""

    pass


# =============================================================================
# JIRA API INTEGRATION
# =============================================================================


class JiraAPIClient:
    """Client for the Jira REST API (v3) with exhaustive search pagination."""

    def __init__(
        self,
        base_url: str,
        email: str,
        token: str,
        timeout: float = 30.0,
        stats: Optional[APIStatistics] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize Jira API client with basic-auth credentials."""
        self.base_url = base_url.rstrip("/")
        self.agile_url = self.base_url.replace("/api/3", "/agile/1.0")
        self.client = httpx.Client(
            base_url=self.base_url,
            auth=(email, token),
            timeout=httpx.Timeout(timeout, connect=10.0),
            headers={
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            },
            transport=transport,
        )
        self.logger = logging.getLogger(__name__)
        self.stats = stats or api_stats

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, *args):
        """Exit context manager and cleanup."""
        self.close()

    def close(self):
        """Close HTTP client."""
        if hasattr(self, "client"):
            self.client.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send a request and decode the JSON body, raising JiraAPIError on failure."""
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            self.stats.record_exception("jira", type(e).__name__)
            self.logger.error(f"❌ Error: Jira API query exception for {url}: {e}")
            raise JiraAPIError(f"Jira request to {url} failed: {e}") from e

        if not response.is_success:
            self.stats.record_error("jira", response.status_code)
            self.logger.error(
                f"❌ Error: Jira API query returned error code: {response.status_code} for {url}"
            )
            raise JiraAPIError(
                f"Jira API returned {response.status_code} for {url}",
                status_code=response.status_code,
            )

        self.stats.record_success("jira")
        return response.json()

    def search(
        self,
        jql: str,
        start_at: int = 0,
        max_results: int = DEFAULT_PAGE_SIZE,
        fields: Optional[list[str]] = None,
    ) -> Tuple[list[dict[str, Any]], int]:
        """Fetch one page of issues matching a JQL query, with the total match count."""
        payload: dict[str, Any] = {
            "jql": jql,
            "startAt": start_at,
            "maxResults": max_results,
        }
        if fields is not None:
            payload["fields"] = fields

        data = self._request("POST", "/search", json=payload)
        return data.get("issues") or [], int(data.get("total") or 0)

    def search_all(
        self,
        jql: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        fields: Optional[list[str]] = None,
    ) -> list[dict[str, Any]]:
        """
        Retrieve every issue matching a JQL query.

        Each page starts at the number of issues already collected. Paging
        stops once the reported total is reached or a page comes back empty,
        so a stale total cannot loop forever.
        """
        issues: list[dict[str, Any]] = []

        while True:
            page, total = self.search(
                jql, start_at=len(issues), max_results=page_size, fields=fields
            )
            issues.extend(page)
            if not page or len(issues) >= total:
                break

        self.logger.debug(f"Jira search returned {len(issues)} issues for: {jql}")
        return issues

    def get_issue(self, issue_key: str, expand_changelog: bool = False) -> dict[str, Any]:
        """Fetch a single issue, optionally with its changelog."""
        params = {"expand": "changelog"} if expand_changelog else None
        return self._request("GET", f"/issue/{issue_key}", params=params)

    def get_sprint_burndown(self, board_id: int, sprint_id: int) -> Any:
        """Fetch burndown data for a sprint from the Jira Agile API."""
        return self._request(
            "GET", f"{self.agile_url}/board/{board_id}/sprint/{sprint_id}/burndown"
        )


# =============================================================================
# GITHUB API INTEGRATION
# =============================================================================


class GitHubAPIClient:
    """Client for the GitHub REST API with Link-header pagination."""

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        stats: Optional[APIStatistics] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize GitHub API client with token."""
        self.token = token
        self.base_url = api_url.rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout, connect=10.0),
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": USER_AGENT,
            },
            transport=transport,
        )
        self.logger = logging.getLogger(__name__)
        self.stats = stats or api_stats

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, *args):
        """Exit context manager and cleanup."""
        self.close()

    def close(self):
        """Close HTTP client."""
        if hasattr(self, "client"):
            self.client.close()

    def _request(self, url: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        try:
            response = self.client.get(url, params=params)
        except httpx.HTTPError as e:
            self.stats.record_exception("github", type(e).__name__)
            self.logger.error(f"❌ Error: GitHub API query exception for {url}: {e}")
            raise GitHubAPIError(f"GitHub request to {url} failed: {e}") from e

        if response.status_code == 404:
            self.stats.record_error("github", 404)
            self.logger.debug(f"GitHub resource not found: {url}")
            raise GitHubNotFoundError(f"GitHub resource not found: {url}", status_code=404)

        if not response.is_success:
            self.stats.record_error("github", response.status_code)
            self.logger.error(
                f"❌ Error: GitHub API query returned error code: {response.status_code} for {url}"
            )
            raise GitHubAPIError(
                f"GitHub API returned {response.status_code} for {url}",
                status_code=response.status_code,
            )

        self.stats.record_success("github")
        return response

    def _get_json(self, url: str, params: Optional[dict[str, Any]] = None) -> Any:
        return self._request(url, params).json()

    def _get_paginated(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        items_key: Optional[str] = None,
        max_items: Optional[int] = None,
    ) -> list[Any]:
        """
        Follow rel="next" links until the listing is exhausted.

        Stops on a missing next link or an empty page. ``items_key`` unwraps
        listings nested in an object (e.g. ``workflow_runs``).
        """
        query: Optional[dict[str, Any]] = {"per_page": GITHUB_PAGE_SIZE, **(params or {})}
        items: list[Any] = []
        next_url: Optional[str] = url

        while next_url:
            response = self._request(next_url, query)
            payload = response.json()
            page = payload.get(items_key, []) if items_key else payload
            if not page:
                break

            items.extend(page)
            if max_items is not None and len(items) >= max_items:
                return items[:max_items]

            next_url = response.links.get("next", {}).get("url")
            # The next link already carries the query string
            query = None

        return items

    def list_repositories(self, exclude_archived: bool = True) -> list[dict[str, Any]]:
        """List repositories visible to the authenticated user."""
        repos = self._get_paginated("/user/repos")
        if exclude_archived:
            repos = [repo for repo in repos if not repo.get("archived")]
        self.logger.info(f"Found {len(repos)} GitHub repositories")
        return repos

    def list_pull_requests(
        self,
        full_name: str,
        state: str = "open",
        direction: Optional[str] = None,
        max_items: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"state": state}
        if direction:
            params["direction"] = direction
        return self._get_paginated(f"/repos/{full_name}/pulls", params, max_items=max_items)

    def get_pull_request(self, full_name: str, number: int) -> dict[str, Any]:
        return self._get_json(f"/repos/{full_name}/pulls/{number}")

    def list_pull_request_files(self, full_name: str, number: int) -> list[dict[str, Any]]:
        return self._get_paginated(f"/repos/{full_name}/pulls/{number}/files")

    def list_reviews(self, full_name: str, number: int) -> list[dict[str, Any]]:
        return self._get_paginated(f"/repos/{full_name}/pulls/{number}/reviews")

    def list_commits(
        self,
        full_name: str,
        since: Optional[datetime.datetime] = None,
        path: Optional[str] = None,
        max_items: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {}
        if since is not None:
            params["since"] = since.isoformat()
        if path:
            params["path"] = path
        return self._get_paginated(f"/repos/{full_name}/commits", params, max_items=max_items)

    def list_earliest_commits(self, full_name: str, count: int) -> list[dict[str, Any]]:
        """
        Fetch at least ``count`` of a repository's oldest commits.

        Commits are listed newest first, so this jumps to the rel="last" page
        and walks rel="prev" links backwards. Histories that fit on one page
        are returned whole.
        """
        first = self._request(f"/repos/{full_name}/commits", {"per_page": GITHUB_PAGE_SIZE})
        page_url = first.links.get("last", {}).get("url")
        if not page_url:
            return first.json() or []

        commits: list[dict[str, Any]] = []
        while page_url and len(commits) < count:
            response = self._request(page_url)
            commits = (response.json() or []) + commits
            page_url = response.links.get("prev", {}).get("url")
        return commits

    def get_commit(self, full_name: str, sha: str) -> dict[str, Any]:
        return self._get_json(f"/repos/{full_name}/commits/{sha}")

    def list_branches(self, full_name: str) -> list[dict[str, Any]]:
        return self._get_paginated(f"/repos/{full_name}/branches")

    def list_workflow_runs(
        self,
        full_name: str,
        created_since: Optional[datetime.datetime] = None,
        max_items: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {}
        if created_since is not None:
            params["created"] = f">={created_since.date().isoformat()}"
        return self._get_paginated(
            f"/repos/{full_name}/actions/runs",
            params,
            items_key="workflow_runs",
            max_items=max_items,
        )

    def get_readme(self, full_name: str) -> dict[str, Any]:
        """Fetch README metadata; raises GitHubNotFoundError when absent."""
        return self._get_json(f"/repos/{full_name}/readme")

    def list_contents(self, full_name: str, path: str = "") -> list[dict[str, Any]]:
        return self._get_json(f"/repos/{full_name}/contents/{path}")

    def list_dependabot_alerts(
        self, full_name: str, state: str = "open"
    ) -> list[dict[str, Any]]:
        return self._get_paginated(
            f"/repos/{full_name}/dependabot/alerts", {"state": state}
        )


# =============================================================================
# JIRA INSIGHT OPERATIONS
# =============================================================================


class JiraInsights:
    """Project-wide insights computed from Jira searches and issue changelogs."""

    QUERIES = {
        "defects": "issuetype = Bug",
        "completed_work": "status = Done AND issuetype in (Story, Task)",
        "reopened": "status WAS Done AND status = Reopened",
        "open_issues": "status != Done",
        "blocked": "Flagged = Impediment",
        "incidents": "issuetype = Bug",
        "restored_incidents": "issuetype = Incident AND status = Resolved",
        "customer_resolved": "project = SERVICEDESK AND status = Resolved",
        "cross_team_blocked": 'issue in linkedIssuesOf("type=Story", "is blocked by")',
        "untriaged": "assignee IS EMPTY",
        "high_priority_open": "priority = High AND status != Done",
        "tech_debt": "labels = tech-debt",
        "refactoring": "labels = refactor",
    }

    def __init__(
        self,
        client: JiraAPIClient,
        page_size: int = DEFAULT_PAGE_SIZE,
        queries: Optional[dict[str, str]] = None,
        now: Optional[datetime.datetime] = None,
    ) -> None:
        self.client = client
        self.page_size = page_size
        self.queries = {**self.QUERIES, **(queries or {})}
        self._now = now

    def now(self) -> datetime.datetime:
        return self._now or datetime.datetime.now(datetime.timezone.utc)

    def _search(self, jql: str) -> list[dict[str, Any]]:
        return self.client.search_all(jql, page_size=self.page_size)

    def _record(self, kind: str, value: Any) -> InsightRecord:
        return InsightRecord(kind=kind, value=value, source=SOURCE_JIRA)

    def _count(self, kind: str, query_name: str) -> InsightRecord:
        return self._record(kind, len(self._search(self.queries[query_name])))

    def _resolution_hours(self, issues: list[dict[str, Any]]) -> list[float]:
        """Hours from creation to resolution for issues that have both dates."""
        hours = []
        for issue in issues:
            fields = issue.get("fields") or {}
            resolved = fields.get("resolutiondate")
            created = fields.get("created")
            if resolved and created:
                hours.append(hours_between(parse_timestamp(created), parse_timestamp(resolved)))
        return hours

    def _age_days(self, issues: list[dict[str, Any]]) -> list[float]:
        now = self.now()
        ages = []
        for issue in issues:
            created = parse_timestamp((issue.get("fields") or {}).get("created"))
            if created is not None:
                ages.append(days_between(created, now))
        return ages

    def _sprint_completion(self, sprint_id: int) -> float:
        committed = self._search(f"sprint = {sprint_id}")
        done = sum(
            1
            for issue in committed
            if ((issue.get("fields") or {}).get("status") or {}).get("name") == "Done"
        )
        return safe_ratio(done, len(committed))

    def velocity(self, sprint_id: int, story_points_field: str) -> InsightRecord:
        """Sum of story points over stories completed in a sprint."""
        issues = self._search(
            f"sprint = {sprint_id} AND issuetype = Story AND status = Done"
        )
        total_points = 0.0
        for issue in issues:
            points = (issue.get("fields") or {}).get(story_points_field)
            if is_numeric_value(points):
                total_points += points
        return self._record("Velocity", total_points)

    def cycle_time(self, issue_key: str) -> InsightRecord:
        """Hours between an issue first entering In Progress and first reaching Done."""
        issue = self.client.get_issue(issue_key, expand_changelog=True)
        changelog = issue.get("changelog")
        start = first_status_transition_time(changelog, "In Progress")
        end = first_status_transition_time(changelog, "Done")
        hours = hours_between(start, end) if start and end else None
        return self._record("CycleTime", hours)

    def defect_ratio(self) -> InsightRecord:
        bugs = self._search(self.queries["defects"])
        completed = self._search(self.queries["completed_work"])
        return self._record("DefectRatio", safe_ratio(len(bugs), len(completed)))

    def sprint_burndown(self, board_id: int, sprint_id: int) -> InsightRecord:
        return self._record(
            "SprintBurndown", self.client.get_sprint_burndown(board_id, sprint_id)
        )

    def issue_throughput(self, days: int) -> InsightRecord:
        issues = self._search(f"status = Done AND resolved >= -{days}d")
        return self._record("IssueThroughput", len(issues))

    def lead_time(self, issue_key: str) -> InsightRecord:
        """Hours from issue creation to its latest transition into Done."""
        issue = self.client.get_issue(issue_key, expand_changelog=True)
        created = parse_timestamp((issue.get("fields") or {}).get("created"))
        done_times = status_transition_times(issue.get("changelog"), "Done")
        hours = None
        if created is not None and done_times:
            hours = hours_between(created, done_times[-1])
        return self._record("LeadTime", hours)

    def average_lead_time(self, jql: str) -> InsightRecord:
        return self._record(
            "AverageLeadTime", mean_or_none(self._resolution_hours(self._search(jql)))
        )

    def reopened_issues(self) -> InsightRecord:
        return self._count("ReopenedIssues", "reopened")

    def issue_aging(self) -> InsightRecord:
        """Average age in days of issues not yet done."""
        issues = self._search(self.queries["open_issues"])
        return self._record("IssueAging", mean_or_none(self._age_days(issues)))

    def blocked_issues(self) -> InsightRecord:
        return self._count("BlockedIssues", "blocked")

    def team_workload_balance(self, project_key: str) -> InsightRecord:
        """Open issues per assignee display name."""
        issues = self._search(f"project = {project_key} AND status != Done")

        def assignee_name(issue: dict[str, Any]) -> str:
            assignee = (issue.get("fields") or {}).get("assignee")
            return (assignee or {}).get("displayName") or UNASSIGNED

        return self._record("TeamWorkloadBalance", count_by(issues, assignee_name))

    def incident_frequency(self) -> InsightRecord:
        return self._count("IncidentFrequency", "incidents")

    def time_to_restore_service(self) -> InsightRecord:
        issues = self._search(self.queries["restored_incidents"])
        return self._record(
            "TimeToRestoreService", mean_or_none(self._resolution_hours(issues))
        )

    def customer_issue_resolution_times(self) -> InsightRecord:
        return self._count("CustomerIssueResolutionTimes", "customer_resolved")

    def cross_team_bottlenecks(self) -> InsightRecord:
        return self._count("CrossTeamBottlenecks", "cross_team_blocked")

    def untriaged_issues(self) -> InsightRecord:
        return self._count("UntriagedIssues", "untriaged")

    def high_priority_issue_aging(self) -> InsightRecord:
        issues = self._search(self.queries["high_priority_open"])
        return self._record("HighPriorityIssueAging", mean_or_none(self._age_days(issues)))

    def epic_progress_tracking(self, epic_key: str) -> InsightRecord:
        issues = self._search(f'"Epic Link" = {epic_key}')
        return self._record("EpicProgressTracking", len(issues))

    def sprint_goal_completion_ratio(self, sprint_id: int) -> InsightRecord:
        return self._record("SprintGoalCompletionRatio", self._sprint_completion(sprint_id))

    def sprint_predictability(self, sprint_id: int) -> InsightRecord:
        # Delivered vs committed uses the same done/committed ratio
        return self._record("SprintPredictability", self._sprint_completion(sprint_id))

    def technical_debt_issues(self) -> InsightRecord:
        return self._count("TechnicalDebtIssues", "tech_debt")

    def refactoring_efforts(self) -> InsightRecord:
        return self._count("RefactoringEfforts", "refactoring")

    def developer_satisfaction_proxy(self) -> InsightRecord:
        return self._record(
            "DeveloperSatisfactionProxy",
            UnsupportedMetric("Use incident rate or survey integration"),
        )

    def cross_repo_work_coordination(self) -> InsightRecord:
        return self._record(
            "CrossRepoWorkCoordination",
            UnsupportedMetric("Requires cross-repo issue linking"),
        )

    def team_collaboration_efficiency(self) -> InsightRecord:
        return self._record(
            "TeamCollaborationEfficiency",
            UnsupportedMetric("Calculate avg comments, resolution speed"),
        )


# =============================================================================
# GITHUB INSIGHT OPERATIONS
# =============================================================================


class GitHubInsights:
    """Repository-scoped insights computed from the GitHub REST API."""

    def __init__(
        self,
        client: GitHubAPIClient,
        limits: Optional[dict[str, Any]] = None,
        windows: Optional[dict[str, Any]] = None,
        review_workers: int = 4,
        now: Optional[datetime.datetime] = None,
    ) -> None:
        self.client = client
        self.limits = limits or {}
        self.windows = windows or {}
        self.review_workers = max(1, review_workers)
        self._now = now

    def now(self) -> datetime.datetime:
        return self._now or datetime.datetime.now(datetime.timezone.utc)

    def _record(self, kind: str, value: Any, repo: dict[str, Any]) -> InsightRecord:
        return InsightRecord(kind=kind, value=value, source=SOURCE_GITHUB, repo=repo.get("name"))

    def _window_start(self, window: str, default_days: int) -> datetime.datetime:
        return self.now() - datetime.timedelta(days=self.windows.get(window, default_days))

    def _gather(self, fetch: Callable[[Any], Any], keys: Iterable[Any]) -> list[Any]:
        """
        Resolve one remote call per key concurrently, preserving key order.

        The first failure propagates and fails the whole operation.
        """
        keys = list(keys)
        if not keys:
            return []
        workers = min(self.review_workers, len(keys))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(fetch, keys))

    def _reviews_for(
        self, repo: dict[str, Any], pulls: list[dict[str, Any]]
    ) -> list[list[dict[str, Any]]]:
        full_name = repo["full_name"]
        return self._gather(
            lambda number: self.client.list_reviews(full_name, number),
            [pr["number"] for pr in pulls],
        )

    def _commit_date(self, commit: dict[str, Any]) -> Optional[datetime.datetime]:
        author = (commit.get("commit") or {}).get("author") or {}
        return parse_timestamp(author.get("date"))

    def pull_request_merge_time(self, repo: dict[str, Any]) -> InsightRecord:
        """Average hours from PR creation to merge over closed PRs."""
        pulls = self.client.list_pull_requests(repo["full_name"], state="closed", direction="desc")
        hours = [
            hours_between(parse_timestamp(pr["created_at"]), parse_timestamp(pr["merged_at"]))
            for pr in pulls
            if pr.get("merged_at")
        ]
        return self._record("PullRequestMergeTime", mean_or_none(hours), repo)

    def commit_frequency(self, repo: dict[str, Any], since: datetime.datetime) -> InsightRecord:
        commits = self.client.list_commits(repo["full_name"], since=since)
        return self._record("CommitFrequency", len(commits), repo)

    def pr_size_lines(self, repo: dict[str, Any]) -> InsightRecord:
        """Average lines added plus deleted per PR over a sample of open PRs."""
        full_name = repo["full_name"]
        pulls = self.client.list_pull_requests(
            full_name, max_items=self.limits.get("pr_size_sample", 50)
        )
        files_per_pull = self._gather(
            lambda number: self.client.list_pull_request_files(full_name, number),
            [pr["number"] for pr in pulls],
        )
        sizes = [
            sum(f.get("additions", 0) + f.get("deletions", 0) for f in files)
            for files in files_per_pull
        ]
        return self._record("PRSizeLinesChanged", mean_or_none(sizes), repo)

    def build_failures_frequency(self, repo: dict[str, Any]) -> InsightRecord:
        since = self._window_start("build_days", 30)
        runs = self.client.list_workflow_runs(repo["full_name"], created_since=since)
        failures = sum(
            1
            for run in runs
            if run.get("conclusion") == "failure"
            and (parse_timestamp(run.get("created_at")) or since) >= since
        )
        return self._record("BuildFailuresFrequency", failures, repo)

    def code_review_time(self, repo: dict[str, Any]) -> InsightRecord:
        """
        Average hours from PR creation to its first approval.

        Closed PRs without an approval fall back to their merge time; PRs with
        neither are left out.
        """
        pulls = self.client.list_pull_requests(repo["full_name"], state="closed")
        hours = []
        for pr, reviews in zip(pulls, self._reviews_for(repo, pulls)):
            created = parse_timestamp(pr["created_at"])
            approvals = sorted(
                parse_timestamp(r["submitted_at"])
                for r in reviews
                if r.get("state") == "APPROVED" and r.get("submitted_at")
            )
            if approvals:
                hours.append(hours_between(created, approvals[0]))
            elif pr.get("merged_at"):
                hours.append(hours_between(created, parse_timestamp(pr["merged_at"])))
        return self._record("CodeReviewTime", mean_or_none(hours), repo)

    def branch_activity(self, repo: dict[str, Any]) -> InsightRecord:
        return self._record("BranchActivity", len(self.client.list_branches(repo["full_name"])), repo)

    def pr_review_comments(self, repo: dict[str, Any]) -> InsightRecord:
        pulls = self.client.list_pull_requests(repo["full_name"])
        total_reviews = sum(len(reviews) for reviews in self._reviews_for(repo, pulls))
        return self._record("PRReviewComments", total_reviews, repo)

    def code_churn_rate(self, repo: dict[str, Any], since: datetime.datetime) -> InsightRecord:
        """Lines added plus deleted across a sample of recent commits."""
        full_name = repo["full_name"]
        commits = self.client.list_commits(
            full_name, since=since, max_items=self.limits.get("churn_sample", 100)
        )
        details = self._gather(
            lambda sha: self.client.get_commit(full_name, sha),
            [commit["sha"] for commit in commits],
        )
        changes = sum(
            f.get("additions", 0) + f.get("deletions", 0)
            for detail in details
            for f in detail.get("files") or []
        )
        return self._record("CodeChurnRate", changes, repo)

    def code_ownership_metrics(self, repo: dict[str, Any], file_path: str) -> InsightRecord:
        """Distinct GitHub authors of commits touching a path, most recent first."""
        commits = self.client.list_commits(repo["full_name"], path=file_path)
        authors: list[str] = []
        for commit in commits:
            login = (commit.get("author") or {}).get("login")
            if login and login not in authors:
                authors.append(login)
        return self._record("CodeOwnershipMetrics", authors, repo)

    def automation_coverage(self, repo: dict[str, Any]) -> InsightRecord:
        """Percentage of workflow runs that concluded successfully."""
        runs = self.client.list_workflow_runs(repo["full_name"])
        successes = sum(1 for run in runs if run.get("conclusion") == "success")
        return self._record("AutomationCoverage", safe_ratio(successes * 100.0, len(runs)), repo)

    def deployment_frequency(self, repo: dict[str, Any]) -> InsightRecord:
        since = self._window_start("deployment_days", 30)
        runs = self.client.list_workflow_runs(repo["full_name"], created_since=since)
        deployments = sum(
            1
            for run in runs
            if run.get("event") == "deployment"
            and (parse_timestamp(run.get("created_at")) or since) >= since
        )
        return self._record("DeploymentFrequency", deployments, repo)

    def blocked_prs(self, repo: dict[str, Any]) -> InsightRecord:
        """Open PRs with at least one changes-requested review."""
        pulls = self.client.list_pull_requests(repo["full_name"])
        blocked = sum(
            1
            for reviews in self._reviews_for(repo, pulls)
            if any(r.get("state") == "CHANGES_REQUESTED" for r in reviews)
        )
        return self._record("BlockedPRs", blocked, repo)

    def code_review_participation(self, repo: dict[str, Any]) -> InsightRecord:
        """Average number of distinct reviewers per open PR."""
        pulls = self.client.list_pull_requests(repo["full_name"])
        reviewer_counts = [
            len({(r.get("user") or {}).get("login") for r in reviews} - {None})
            for reviews in self._reviews_for(repo, pulls)
        ]
        return self._record("CodeReviewParticipation", mean_or_none(reviewer_counts), repo)

    def developer_activity_heatmap(self, repo: dict[str, Any]) -> InsightRecord:
        """Commit counts per calendar day (UTC)."""
        commits = self.client.list_commits(
            repo["full_name"], max_items=self.limits.get("activity_commits", 1000)
        )
        dated = [self._commit_date(commit) for commit in commits]
        per_day = count_by(
            (d for d in dated if d is not None), lambda d: d.date().isoformat()
        )
        return self._record("DeveloperActivityHeatmap", dict(sorted(per_day.items())), repo)

    def security_vulnerabilities(self, repo: dict[str, Any]) -> InsightRecord:
        alerts = self.client.list_dependabot_alerts(repo["full_name"], state="open")
        return self._record("SecurityVulnerabilities", len(alerts), repo)

    def refactoring_efforts(self, repo: dict[str, Any]) -> InsightRecord:
        pulls = self.client.list_pull_requests(repo["full_name"])
        count = sum(
            1
            for pr in pulls
            if any((label.get("name") or "").lower() == "refactor" for label in pr.get("labels", []))
        )
        return self._record("RefactoringEfforts", count, repo)

    def avg_time_in_code_review(self, repo: dict[str, Any]) -> InsightRecord:
        """Average hours from the first review to merge over merged PRs."""
        pulls = [
            pr
            for pr in self.client.list_pull_requests(repo["full_name"], state="closed")
            if pr.get("merged_at")
        ]
        hours = []
        for pr, reviews in zip(pulls, self._reviews_for(repo, pulls)):
            submitted = sorted(
                parse_timestamp(r["submitted_at"]) for r in reviews if r.get("submitted_at")
            )
            if submitted:
                hours.append(hours_between(submitted[0], parse_timestamp(pr["merged_at"])))
        return self._record("AvgTimeInCodeReview", mean_or_none(hours), repo)

    def contributor_onboarding_time(self, repo: dict[str, Any]) -> InsightRecord:
        """Hours between the first and fifth commit in the repository history."""
        commits = self.client.list_earliest_commits(repo["full_name"], 5)
        dates = sorted(d for d in (self._commit_date(c) for c in commits) if d is not None)
        hours = hours_between(dates[0], dates[4]) if len(dates) >= 5 else None
        return self._record("ContributorOnboardingTime", hours, repo)

    def documentation_coverage(self, repo: dict[str, Any]) -> InsightRecord:
        """README and docs/ presence plus the number of doc-labeled open PRs."""
        full_name = repo["full_name"]
        pulls = self.client.list_pull_requests(full_name)
        doc_pulls = sum(
            1
            for pr in pulls
            if any("doc" in (label.get("name") or "").lower() for label in pr.get("labels", []))
        )

        try:
            has_readme = self.client.get_readme(full_name) is not None
        except GitHubNotFoundError:
            has_readme = False

        try:
            contents = self.client.list_contents(full_name)
            has_documentation = any(
                (entry.get("name") or "").lower() == "docs" and entry.get("type") == "dir"
                for entry in contents
            )
        except GitHubNotFoundError:
            has_documentation = False

        return self._record(
            "DocumentationCoverage",
            {
                "has_readme": has_readme,
                "has_documentation": has_documentation,
                "documentation_pull_requests": doc_pulls,
            },
            repo,
        )

    def code_merge_conflicts_frequency(self, repo: dict[str, Any]) -> InsightRecord:
        """Open PRs GitHub reports as not mergeable."""
        full_name = repo["full_name"]
        pulls = self.client.list_pull_requests(full_name)
        details = self._gather(
            lambda number: self.client.get_pull_request(full_name, number),
            [pr["number"] for pr in pulls],
        )
        conflicted = sum(1 for detail in details if detail.get("mergeable") is False)
        return self._record("CodeMergeConflictsFrequency", conflicted, repo)

    def dependency_updates_frequency(self, repo: dict[str, Any]) -> InsightRecord:
        pulls = self.client.list_pull_requests(repo["full_name"])
        count = sum(
            1
            for pr in pulls
            if "dependenc" in (pr.get("title") or "").lower()
            or "dependenc" in (pr.get("body") or "").lower()
        )
        return self._record("DependencyUpdatesFrequency", count, repo)

    def cross_repo_work_coordination(self, repo: dict[str, Any]) -> InsightRecord:
        """PRs whose title or body references at least one Jira issue key."""
        pulls = self.client.list_pull_requests(
            repo["full_name"], state="all", max_items=self.limits.get("linked_pr_sample", 100)
        )
        linked = sum(
            1
            for pr in pulls
            if extract_issue_keys(pr.get("title")) or extract_issue_keys(pr.get("body"))
        )
        return self._record("CrossRepoWorkCoordination", linked, repo)

    def feature_toggle_usage(self, repo: dict[str, Any]) -> InsightRecord:
        return self._record(
            "FeatureToggleUsage",
            UnsupportedMetric("Parse labels/tags/commits for feature toggles"),
            repo,
        )

    def test_automation_failures(self, repo: dict[str, Any]) -> InsightRecord:
        return self._record(
            "TestAutomationFailures", UnsupportedMetric("Requires CI<->Jira cross-link"), repo
        )

    def release_notes_completeness(self, repo: dict[str, Any]) -> InsightRecord:
        return self._record(
            "ReleaseNotesCompleteness",
            UnsupportedMetric("Parse PRs/issues for release notes/labels"),
            repo,
        )

    def feature_usage_feedback_loops(self, repo: dict[str, Any]) -> InsightRecord:
        return self._record(
            "FeatureUsageFeedbackLoops", UnsupportedMetric("Needs customer feedback mapping"), repo
        )

    def team_collaboration_efficiency(self, repo: dict[str, Any]) -> InsightRecord:
        return self._record(
            "TeamCollaborationEfficiency",
            UnsupportedMetric("Calculate comments/discussion speed"),
            repo,
        )


# =============================================================================
# OUTPUT RENDERING
# =============================================================================


class ReportRenderer:
    """Handles rendering of collected insights into output formats."""

    def __init__(self, config: dict[str, Any], logger: logging.Logger) -> None:
        self.config = config
        self.logger = logger

    def render_json_report(self, data: dict[str, Any], output_path: Path) -> None:
        """Write the canonical JSON report."""
        self.logger.info(f"Writing JSON report to {output_path}")

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, default=str, **JSON_DUMP_OPTIONS)

    def render_markdown_report(self, data: dict[str, Any], output_path: Path) -> str:
        """Generate Markdown report from JSON data."""
        self.logger.info(f"Generating Markdown report to {output_path}")

        markdown_content = self._generate_markdown_content(data)

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(markdown_content)

        return markdown_content

    def _generate_markdown_content(self, data: dict[str, Any]) -> str:
        sections = [
            self._generate_title_section(data),
            self._generate_portfolio_section(data),
            self._generate_project_section(data),
            self._generate_repositories_section(data),
            self._generate_errors_section(data),
        ]
        return "\n\n".join(section for section in sections if section) + "\n"

    def _generate_title_section(self, data: dict[str, Any]) -> str:
        repo_count = len(data.get("repositories", []))
        error_count = len(data.get("errors", []))
        return "\n".join(
            [
                f"# 📊 Engineering Insights Report: {data.get('project', 'Unknown')}",
                "",
                f"- **Generated:** {data.get('generated_at', 'Unknown')}",
                f"- **Repositories:** {repo_count}",
                f"- **Errors:** {error_count}",
                f"- **Schema Version:** {data.get('schema_version', 'Unknown')}",
            ]
        )

    def _generate_portfolio_section(self, data: dict[str, Any]) -> str:
        averages = data.get("averages", {})
        totals = data.get("totals", {})
        if not averages:
            return "## Portfolio Summary\n\nNo numeric repository insights were collected."

        lines = [
            "## Portfolio Summary",
            "",
            "| Insight | Description | Average | Total |",
            "|---------|-------------|--------:|------:|",
        ]
        for kind in sorted(averages):
            lines.append(
                f"| {kind} | {describe_insight_kind(kind)} | "
                f"{self._format_number(averages[kind])} | {self._format_number(totals.get(kind, 0))} |"
            )
        return "\n".join(lines)

    def _generate_project_section(self, data: dict[str, Any]) -> str:
        records = data.get("project_insights", [])
        if not records:
            return ""
        return "## Project Insights (Jira)\n\n" + self._generate_records_table(records)

    def _generate_repositories_section(self, data: dict[str, Any]) -> str:
        parts = []
        for summary in data.get("repositories", []):
            parts.append(f"### {summary['repo']}\n\n" + self._generate_records_table(summary["results"]))
        if not parts:
            return ""
        return "## Repositories\n\n" + "\n\n".join(parts)

    def _generate_errors_section(self, data: dict[str, Any]) -> str:
        errors = data.get("errors", [])
        if not errors:
            return ""
        lines = ["## ❌ Errors", "", "| Repository | Insight | Category | Error |", "|---|---|---|---|"]
        for error in errors:
            lines.append(
                f"| {error.get('repo') or '-'} | {error.get('insight') or '-'} | "
                f"{error.get('category', '')} | {self._escape(str(error.get('error', '')))} |"
            )
        return "\n".join(lines)

    def _generate_records_table(self, records: list[dict[str, Any]]) -> str:
        lines = ["| Insight | Value | Source |", "|---------|-------|--------|"]
        for record in records:
            value = self._format_value(record.get("value"))
            if not record.get("supported", True):
                value = f"⚠️ Not supported: {value}"
            lines.append(f"| {record['kind']} | {self._escape(value)} | {record['source']} |")
        return "\n".join(lines)

    def _format_value(self, value: Any) -> str:
        if value is None:
            return "n/a"
        if isinstance(value, bool):
            return "✅" if value else "❌"
        if is_numeric_value(value):
            return self._format_number(value)
        if isinstance(value, dict):
            return ", ".join(f"{k}: {self._format_value(v)}" for k, v in value.items()) or "-"
        if isinstance(value, list):
            return ", ".join(self._format_value(v) for v in value) or "-"
        return str(value)

    def _format_number(self, num: float) -> str:
        if isinstance(num, int) or float(num).is_integer():
            return f"{int(num):,}"
        return f"{num:,.2f}"

    def _escape(self, text: str) -> str:
        return text.replace("|", "\\|").replace("\n", " ")


def save_resolved_config(config: Dict[str, Any], output_path: Path) -> None:
    """Save the resolved configuration to a JSON file."""
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(config, f, **JSON_DUMP_OPTIONS)


# =============================================================================
# MAIN ORCHESTRATION
# =============================================================================

# (insight kind, bound operation, positional arguments)
Operation = Tuple[str, Callable[..., InsightRecord], tuple]


class InsightsReporter:
    """Main orchestrator for insight collection."""

    def __init__(
        self,
        config: dict[str, Any],
        logger: logging.Logger,
        jira_client: Optional[JiraAPIClient] = None,
        github_client: Optional[GitHubAPIClient] = None,
        stats: Optional[APIStatistics] = None,
    ) -> None:
        self.config = config
        self.logger = logger
        self.stats = stats or api_stats
        self.jira_client = jira_client
        self.github_client = github_client
        self.renderer = ReportRenderer(config, logger)
        self.last_report: Optional[dict[str, Any]] = None

        performance = config.get("performance", {})
        self.jira_insights = None
        if jira_client is not None:
            jira_config = config.get("jira", {})
            self.jira_insights = JiraInsights(
                jira_client,
                page_size=jira_config.get("page_size", DEFAULT_PAGE_SIZE),
                queries=jira_config.get("queries"),
            )
        self.github_insights = None
        if github_client is not None:
            self.github_insights = GitHubInsights(
                github_client,
                limits=config.get("limits", {}),
                windows=config.get("windows", {}),
                review_workers=performance.get("review_workers", 4),
            )

    @classmethod
    def from_credentials(
        cls,
        config: dict[str, Any],
        logger: logging.Logger,
        credentials: dict[str, str],
        skip_jira: bool = False,
        skip_github: bool = False,
    ) -> "InsightsReporter":
        """Build clients for every remote system that has credentials configured."""
        timeout = config.get("performance", {}).get("timeout", 30.0)

        jira_client = None
        jira_url = config.get("jira", {}).get("base_url")
        if skip_jira:
            logger.info("Jira insights disabled by command line")
        elif jira_url and credentials.get("jira_email") and credentials.get("jira_token"):
            jira_client = JiraAPIClient(
                jira_url, credentials["jira_email"], credentials["jira_token"], timeout=timeout
            )
        else:
            logger.warning("Jira base URL or JIRA_EMAIL/JIRA_TOKEN missing - skipping Jira insights")

        github_client = None
        if skip_github:
            logger.info("GitHub insights disabled by command line")
        elif credentials.get("github_token"):
            github_client = GitHubAPIClient(
                credentials["github_token"],
                api_url=config.get("github", {}).get("api_url", "https://api.github.com"),
                timeout=timeout,
            )
        else:
            logger.warning("GITHUB_TOKEN missing - skipping GitHub insights")

        return cls(config, logger, jira_client=jira_client, github_client=github_client)

    def close(self) -> None:
        for client in (self.jira_client, self.github_client):
            if client is not None:
                client.close()

    def _run_operation(
        self, kind: str, func: Callable[..., InsightRecord], args: tuple, repo_name: Optional[str]
    ) -> Tuple[Optional[InsightRecord], Optional[dict[str, Any]]]:
        """Run one insight operation, turning a failure into an error entry."""
        try:
            return func(*args), None
        except Exception as e:
            category = "remote_api_error" if isinstance(e, InsightAPIError) else "insight_failure"
            self.logger.error(f"❌ Failed to compute {kind} for {repo_name or 'project'}: {e}")
            return None, {"repo": repo_name, "insight": kind, "error": str(e), "category": category}

    def _jira_operations(self, insights: JiraInsights) -> list[Operation]:
        jira_config = self.config.get("jira", {})
        operations: list[Operation] = [
            ("DefectRatio", insights.defect_ratio, ()),
            ("ReopenedIssues", insights.reopened_issues, ()),
            ("IssueAging", insights.issue_aging, ()),
            ("BlockedIssues", insights.blocked_issues, ()),
            ("IncidentFrequency", insights.incident_frequency, ()),
            ("TimeToRestoreService", insights.time_to_restore_service, ()),
            ("CustomerIssueResolutionTimes", insights.customer_issue_resolution_times, ()),
            ("CrossTeamBottlenecks", insights.cross_team_bottlenecks, ()),
            ("UntriagedIssues", insights.untriaged_issues, ()),
            ("HighPriorityIssueAging", insights.high_priority_issue_aging, ()),
            ("TechnicalDebtIssues", insights.technical_debt_issues, ()),
            ("RefactoringEfforts", insights.refactoring_efforts, ()),
            ("DeveloperSatisfactionProxy", insights.developer_satisfaction_proxy, ()),
            ("CrossRepoWorkCoordination", insights.cross_repo_work_coordination, ()),
            ("TeamCollaborationEfficiency", insights.team_collaboration_efficiency, ()),
            ("IssueThroughput", insights.issue_throughput, (jira_config.get("throughput_days", 1),)),
        ]

        # Operations that need project-specific identifiers run only when configured
        optional = [
            ("CycleTime", insights.cycle_time, ("issue_key",)),
            ("LeadTime", insights.lead_time, ("issue_key",)),
            ("AverageLeadTime", insights.average_lead_time, ("lead_time_jql",)),
            ("TeamWorkloadBalance", insights.team_workload_balance, ("project_key",)),
            ("EpicProgressTracking", insights.epic_progress_tracking, ("epic_key",)),
            ("Velocity", insights.velocity, ("sprint_id", "story_points_field")),
            ("SprintGoalCompletionRatio", insights.sprint_goal_completion_ratio, ("sprint_id",)),
            ("SprintPredictability", insights.sprint_predictability, ("sprint_id",)),
            ("SprintBurndown", insights.sprint_burndown, ("board_id", "sprint_id")),
        ]
        for kind, func, keys in optional:
            values = tuple(jira_config.get(key) for key in keys)
            if any(value in (None, "") for value in values):
                self.logger.debug(f"Skipping {kind}: jira.{'/'.join(keys)} not configured")
                continue
            operations.append((kind, func, values))

        return operations

    def _github_operations(
        self, insights: GitHubInsights, repo: dict[str, Any]
    ) -> list[Operation]:
        windows = self.config.get("windows", {})
        since = insights.now() - datetime.timedelta(days=windows.get("commit_days", 30))
        ownership_path = self.config.get("limits", {}).get("code_ownership_path") or "README.md"

        return [
            ("PullRequestMergeTime", insights.pull_request_merge_time, (repo,)),
            ("CommitFrequency", insights.commit_frequency, (repo, since)),
            ("PRSizeLinesChanged", insights.pr_size_lines, (repo,)),
            ("BuildFailuresFrequency", insights.build_failures_frequency, (repo,)),
            ("CodeReviewTime", insights.code_review_time, (repo,)),
            ("BranchActivity", insights.branch_activity, (repo,)),
            ("PRReviewComments", insights.pr_review_comments, (repo,)),
            ("CodeChurnRate", insights.code_churn_rate, (repo, since)),
            ("CodeOwnershipMetrics", insights.code_ownership_metrics, (repo, ownership_path)),
            ("AutomationCoverage", insights.automation_coverage, (repo,)),
            ("DeploymentFrequency", insights.deployment_frequency, (repo,)),
            ("BlockedPRs", insights.blocked_prs, (repo,)),
            ("CodeReviewParticipation", insights.code_review_participation, (repo,)),
            ("DeveloperActivityHeatmap", insights.developer_activity_heatmap, (repo,)),
            ("SecurityVulnerabilities", insights.security_vulnerabilities, (repo,)),
            ("RefactoringEfforts", insights.refactoring_efforts, (repo,)),
            ("AvgTimeInCodeReview", insights.avg_time_in_code_review, (repo,)),
            ("ContributorOnboardingTime", insights.contributor_onboarding_time, (repo,)),
            ("FeatureToggleUsage", insights.feature_toggle_usage, (repo,)),
            ("DocumentationCoverage", insights.documentation_coverage, (repo,)),
            ("CodeMergeConflictsFrequency", insights.code_merge_conflicts_frequency, (repo,)),
            ("TestAutomationFailures", insights.test_automation_failures, (repo,)),
            ("ReleaseNotesCompleteness", insights.release_notes_completeness, (repo,)),
            ("DependencyUpdatesFrequency", insights.dependency_updates_frequency, (repo,)),
            ("CrossRepoWorkCoordination", insights.cross_repo_work_coordination, (repo,)),
            ("FeatureUsageFeedbackLoops", insights.feature_usage_feedback_loops, (repo,)),
            ("TeamCollaborationEfficiency", insights.team_collaboration_efficiency, (repo,)),
        ]

    def collect_project_insights(self) -> Tuple[list[InsightRecord], list[dict[str, Any]]]:
        """Run the project-wide Jira operations."""
        if self.jira_insights is None:
            return [], []

        records: list[InsightRecord] = []
        errors: list[dict[str, Any]] = []
        operations = self._jira_operations(self.jira_insights)
        self.logger.info(f"Collecting {len(operations)} Jira project insights")

        for kind, func, args in operations:
            record, error = self._run_operation(kind, func, args, None)
            if record is not None:
                records.append(record)
            if error is not None:
                errors.append(error)

        return records, errors

    def _analyze_single_repository(self, repo: dict[str, Any]) -> dict[str, Any]:
        """Run every GitHub operation for one repository."""
        repo_name = repo["name"]
        self.logger.debug(f"Analyzing repository: {repo_name}")

        records: list[InsightRecord] = []
        errors: list[dict[str, Any]] = []
        for kind, func, args in self._github_operations(self.github_insights, repo):
            record, error = self._run_operation(kind, func, args, repo_name)
            if record is not None:
                records.append(record)
            if error is not None:
                errors.append(error)

        summary = RepoInsightsSummary(repo=repo_name, results=stamp_repo(records, repo_name))
        return {"summary": summary, "errors": errors}

    def _analyze_repositories_parallel(
        self, repos: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Analyze repositories with optional concurrency."""
        max_workers = max(1, self.config.get("performance", {}).get("max_workers", 8))

        if max_workers == 1:
            return [self._analyze_single_repository(repo) for repo in repos]

        results = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_repo = {
                executor.submit(self._analyze_single_repository, repo): repo for repo in repos
            }

            for future in concurrent.futures.as_completed(future_to_repo):
                repo = future_to_repo[future]
                try:
                    results.append(future.result())
                except Exception as e:
                    self.logger.error(f"Failed to analyze {repo.get('name')}: {e}")
                    results.append(
                        {
                            "summary": None,
                            "errors": [
                                {
                                    "repo": repo.get("name"),
                                    "insight": None,
                                    "error": str(e),
                                    "category": "analysis_failure",
                                }
                            ],
                        }
                    )

        return results

    def collect_repository_insights(
        self,
    ) -> Tuple[list[RepoInsightsSummary], list[dict[str, Any]]]:
        """List repositories and run the GitHub operations for each of them."""
        if self.github_insights is None:
            return [], []

        try:
            repos = self.github_client.list_repositories(exclude_archived=True)
        except InsightAPIError as e:
            self.logger.error(f"❌ Could not list GitHub repositories: {e}")
            return [], [
                {"repo": None, "insight": None, "error": str(e), "category": "repository_discovery"}
            ]

        summaries: list[RepoInsightsSummary] = []
        errors: list[dict[str, Any]] = []
        for result in self._analyze_repositories_parallel(repos):
            if result["summary"] is not None:
                summaries.append(result["summary"])
            errors.extend(result["errors"])

        summaries.sort(key=lambda s: s.repo.lower())
        return summaries, errors

    def analyze(self) -> dict[str, Any]:
        """Collect project and repository insights into the report structure."""
        self.logger.info(f"Starting insight collection for {self.config.get('project')}")

        project_records, project_errors = self.collect_project_insights()
        summaries, repo_errors = self.collect_repository_insights()
        portfolio = PortfolioInsights(summaries=summaries)
        portfolio_data = portfolio.to_dict()

        report_data = {
            "schema_version": SCHEMA_VERSION,
            "generated_at": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "project": self.config.get("project"),
            "config_digest": compute_config_digest(self.config),
            "script_version": SCRIPT_VERSION,
            "project_insights": [record.to_dict() for record in project_records],
            "repositories": portfolio_data["repositories"],
            "averages": portfolio_data["averages"],
            "totals": portfolio_data["totals"],
            "errors": project_errors + repo_errors,
            "api_statistics": self.stats.to_dict(),
        }

        self.logger.info(
            f"Analysis complete: {len(summaries)} repositories, "
            f"{len(project_records)} project insights, {len(report_data['errors'])} errors"
        )
        return report_data

    def generate_reports(self, output_dir: Path, write_markdown: bool = True) -> dict[str, Path]:
        """Collect insights and write JSON, Markdown and resolved configuration."""
        output_dir.mkdir(parents=True, exist_ok=True)
        report_data = self.analyze()

        generated_files = {}

        json_path = output_dir / "report_raw.json"
        self.renderer.render_json_report(report_data, json_path)
        generated_files["json"] = json_path

        if write_markdown:
            markdown_path = output_dir / "report.md"
            self.renderer.render_markdown_report(report_data, markdown_path)
            generated_files["markdown"] = markdown_path

        config_path = output_dir / "config_resolved.json"
        save_resolved_config(self.config, config_path)
        generated_files["config"] = config_path

        self.last_report = report_data
        return generated_files


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Generate engineering insight reports from Jira and GitHub",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  JIRA_EMAIL, JIRA_TOKEN   Jira basic-auth credentials
  GITHUB_TOKEN             GitHub token (repo + read:org scopes)

Examples:
  %(prog)s --project acme
  %(prog)s --project acme --config-dir ./config --output-dir ./reports
  %(prog)s --project acme --skip-jira --verbose
        """,
    )

    parser.add_argument(
        "--project",
        required=True,
        help="Project name (used for config override and output naming)",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=DEFAULT_CONFIG_DIR,
        help=f"Configuration directory (default: {DEFAULT_CONFIG_DIR})",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help=f"Output directory (default: {DEFAULT_OUTPUT_DIR})",
    )

    parser.add_argument("--skip-jira", action="store_true", help="Do not query Jira")
    parser.add_argument("--skip-github", action="store_true", help="Do not query GitHub")
    parser.add_argument(
        "--no-markdown", action="store_true", help="Skip Markdown report generation"
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )
    parser.add_argument(
        "--validate-only", action="store_true", help="Validate configuration and exit"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level from configuration",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    try:
        args = parse_arguments(argv)

        try:
            config = load_configuration(args.config_dir, args.project)
        except Exception as e:
            print(f"ERROR: Failed to load configuration: {e}", file=sys.stderr)
            return 1

        if args.log_level:
            config.setdefault("logging", {})["level"] = args.log_level
        elif args.verbose:
            config.setdefault("logging", {})["level"] = "DEBUG"

        log_config = config.get("logging", {})
        logger = setup_logging(
            level=log_config.get("level", "INFO"),
            include_timestamps=log_config.get("include_timestamps", True),
        )

        logger.info(f"Engineering Insights Reporting System v{SCRIPT_VERSION}")
        logger.info(f"Project: {args.project}")
        logger.info(f"Configuration digest: {compute_config_digest(config)[:12]}...")

        if args.validate_only:
            logger.info("Configuration validation successful")
            print(f"✅ Configuration valid for project '{args.project}'")
            print(f"   - Jira URL: {config.get('jira', {}).get('base_url', 'not configured')}")
            print(f"   - GitHub API: {config.get('github', {}).get('api_url', 'not configured')}")
            return 0

        project_output_dir = args.output_dir / args.project
        reporter = InsightsReporter.from_credentials(
            config,
            logger,
            load_credentials(),
            skip_jira=args.skip_jira,
            skip_github=args.skip_github,
        )
        write_markdown = config.get("output", {}).get("markdown", True) and not args.no_markdown
        try:
            generated = reporter.generate_reports(project_output_dir, write_markdown=write_markdown)
        finally:
            reporter.close()

        report_data = reporter.last_report
        repo_count = len(report_data["repositories"])
        error_count = len(report_data["errors"])

        print("\n✅ Insight report generation completed!")
        print(f"   - Repositories: {repo_count}")
        print(f"   - Project insights: {len(report_data['project_insights'])}")
        print(f"   - Errors: {error_count}")
        print(f"   - Output directory: {project_output_dir}")

        if error_count > 0:
            print(f"   - Check {generated['json']} for error details")

        api_stats_output = reporter.stats.format_console_output()
        if api_stats_output:
            print(api_stats_output)
        reporter.stats.write_to_step_summary()

        return 0

    except KeyboardInterrupt:
        print("\n❌ Operation cancelled by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
