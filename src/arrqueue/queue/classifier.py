"""Issue classification for queue records.

Classification is an ordered list of small predicate/effect rules evaluated
against a record's state fields and its collected status lines. Rules are
independent and their issue types accumulate, except for rules sharing an
exclusive group, where only the first matching rule of the group applies.

Rule order (and therefore the order of the candidate remediation):
    1. import_pending     importPending state with a download id
    2. manual_import      manual-import wording in the status lines
    3. stalled            stalled status or wording
    4. download_error     tracked status "Error" or status "Failed"
    5. timeout            timeout wording
    6. import_error       import-failure wording
    7. missing_files      no-files-found wording

Keyword sets are heuristics tuned against Sonarr/Radarr message text.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from arrqueue.queue.models import (
    IssueAnalysis,
    IssueType,
    MessageTone,
    QueueRecord,
    RecommendedAction,
)
from arrqueue.queue.status_lines import collect_status_lines
from arrqueue.queue.tone import escalate_tone

MANUAL_IMPORT_KEYWORDS: tuple[str, ...] = (
    "manual import",
    "cannot be imported automatically",
)
STALLED_KEYWORDS: tuple[str, ...] = ("stalled",)
TIMEOUT_KEYWORDS: tuple[str, ...] = ("timed out", "timeout")
IMPORT_FAILURE_KEYWORDS: tuple[str, ...] = ("import failed", "importfailed")
MISSING_FILES_KEYWORDS: tuple[str, ...] = (
    "no files found",
    "no files were found",
    "no video files",
)

ISSUE_TYPE_LABELS: dict[IssueType, str] = {
    IssueType.FAILED_IMPORT: "Failed Import",
    IssueType.STALLED: "Stalled",
    IssueType.DOWNLOAD_ERROR: "Download Error",
    IssueType.IMPORT_ERROR: "Import Error",
    IssueType.WARNING: "Warning",
    IssueType.TIMEOUT: "Timeout",
    IssueType.MISSING_FILES: "Missing Files",
}


@dataclass(frozen=True)
class RuleContext:
    """Inputs shared by every rule: the record and its casefolded lines."""

    record: QueueRecord
    lines: tuple[str, ...]

    def mentions(self, keywords: Iterable[str]) -> bool:
        """Check whether any line contains any of the keywords."""
        keywords = tuple(keywords)
        return any(keyword in line for line in self.lines for keyword in keywords)


@dataclass(frozen=True)
class RuleEffect:
    """Contribution of a matched rule to the analysis."""

    issue_type: IssueType
    severity: MessageTone | None = None
    can_retry: bool = False
    can_manual_import: bool = False
    candidate_action: RecommendedAction | None = None


@dataclass(frozen=True)
class ClassificationRule:
    """A named predicate with the effect it applies when matched."""

    name: str
    predicate: Callable[[RuleContext], bool]
    effect: RuleEffect
    exclusive_group: str | None = None


def _casefold(value: str | None) -> str:
    return value.strip().casefold() if isinstance(value, str) else ""


_FAILED_IMPORT = RuleEffect(
    issue_type=IssueType.FAILED_IMPORT,
    can_manual_import=True,
    candidate_action=RecommendedAction.MANUAL_IMPORT,
)

RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        name="import_pending",
        predicate=lambda ctx: (
            _casefold(ctx.record.tracked_download_state) == "importpending"
            and bool(ctx.record.download_id)
        ),
        effect=_FAILED_IMPORT,
        exclusive_group="failed_import",
    ),
    ClassificationRule(
        name="manual_import",
        predicate=lambda ctx: ctx.mentions(MANUAL_IMPORT_KEYWORDS),
        effect=_FAILED_IMPORT,
        exclusive_group="failed_import",
    ),
    ClassificationRule(
        name="stalled",
        predicate=lambda ctx: (
            _casefold(ctx.record.status) == "stalled"
            or ctx.mentions(STALLED_KEYWORDS)
        ),
        effect=RuleEffect(
            issue_type=IssueType.STALLED,
            severity=MessageTone.WARNING,
            can_retry=True,
            candidate_action=RecommendedAction.RETRY,
        ),
    ),
    ClassificationRule(
        name="download_error",
        predicate=lambda ctx: (
            _casefold(ctx.record.tracked_download_status) == "error"
            or _casefold(ctx.record.status) == "failed"
        ),
        effect=RuleEffect(
            issue_type=IssueType.DOWNLOAD_ERROR,
            severity=MessageTone.ERROR,
        ),
    ),
    ClassificationRule(
        name="timeout",
        predicate=lambda ctx: ctx.mentions(TIMEOUT_KEYWORDS),
        effect=RuleEffect(
            issue_type=IssueType.TIMEOUT,
            severity=MessageTone.WARNING,
            can_retry=True,
            candidate_action=RecommendedAction.RETRY,
        ),
    ),
    ClassificationRule(
        name="import_error",
        predicate=lambda ctx: ctx.mentions(IMPORT_FAILURE_KEYWORDS),
        effect=RuleEffect(
            issue_type=IssueType.IMPORT_ERROR,
            severity=MessageTone.ERROR,
        ),
    ),
    ClassificationRule(
        name="missing_files",
        predicate=lambda ctx: ctx.mentions(MISSING_FILES_KEYWORDS),
        effect=RuleEffect(
            issue_type=IssueType.MISSING_FILES,
            severity=MessageTone.WARNING,
        ),
    ),
)


def matching_rules(
    record: QueueRecord,
    rules: Iterable[ClassificationRule] = RULES,
) -> list[ClassificationRule]:
    """Evaluate rules in order and return those that apply.

    Within an exclusive group only the first matching rule is returned.

    Args:
        record: Queue record to classify.
        rules: Ordered rule list. Defaults to RULES.

    Returns:
        Matched rules in evaluation order.
    """
    context = RuleContext(
        record=record,
        lines=tuple(line.text.casefold() for line in collect_status_lines(record)),
    )
    matched: list[ClassificationRule] = []
    claimed_groups: set[str] = set()

    for rule in rules:
        if rule.exclusive_group and rule.exclusive_group in claimed_groups:
            continue
        if not rule.predicate(context):
            continue
        matched.append(rule)
        if rule.exclusive_group:
            claimed_groups.add(rule.exclusive_group)

    return matched


def analyze_queue_item(record: QueueRecord) -> IssueAnalysis:
    """Classify a queue record's health.

    Severity starts at info and is only ever raised: stalled, timeout and
    missing files raise it to warning; an explicit error message, a
    download error or an import error raise it to error.

    The recommended action is manual import when a failed import was found,
    otherwise retry for stalled or timed-out downloads, otherwise blocklist,
    and None when nothing is wrong. Blocklist covers missing files and also
    error severity on its own, without missing files: a record whose status
    is "Failed" with no other issue is recommended for blocklist.

    Args:
        record: Queue record to classify.

    Returns:
        Immutable analysis. Calling twice on the same record yields equal
        results.
    """
    issue_types: set[IssueType] = set()
    severity = MessageTone.INFO
    can_retry = False
    can_manual_import = False
    candidates: list[RecommendedAction] = []

    if isinstance(record.error_message, str) and record.error_message.strip():
        severity = MessageTone.ERROR

    for rule in matching_rules(record):
        effect = rule.effect
        issue_types.add(effect.issue_type)
        if effect.severity is not None:
            severity = escalate_tone(severity, effect.severity)
        can_retry = can_retry or effect.can_retry
        can_manual_import = can_manual_import or effect.can_manual_import
        if effect.candidate_action is not None:
            candidates.append(effect.candidate_action)

    is_problematic = bool(issue_types)
    recommended: RecommendedAction | None = None
    if is_problematic:
        if RecommendedAction.MANUAL_IMPORT in candidates:
            recommended = RecommendedAction.MANUAL_IMPORT
        elif RecommendedAction.RETRY in candidates:
            recommended = RecommendedAction.RETRY
        elif IssueType.MISSING_FILES in issue_types or severity is MessageTone.ERROR:
            recommended = RecommendedAction.BLOCKLIST

    return IssueAnalysis(
        is_problematic=is_problematic,
        issue_types=frozenset(issue_types),
        severity=severity,
        can_retry=can_retry,
        can_manual_import=can_manual_import,
        recommended_action=recommended,
    )


def filter_problematic_items(records: Iterable[QueueRecord]) -> list[QueueRecord]:
    """Keep only records the classifier flags as problematic."""
    return [record for record in records if analyze_queue_item(record).is_problematic]


def get_problematic_counts(records: Iterable[QueueRecord]) -> dict[IssueType, int]:
    """Count records per issue type.

    A record with several issue types is counted once under each.

    Returns:
        Mapping with an entry (possibly zero) for every IssueType.
    """
    counts = {issue_type: 0 for issue_type in IssueType}
    for record in records:
        for issue_type in analyze_queue_item(record).issue_types:
            counts[issue_type] += 1
    return counts


def get_problematic_count(records: Iterable[QueueRecord]) -> int:
    """Count problematic records."""
    return len(filter_problematic_items(records))
