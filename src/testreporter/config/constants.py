"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
These are limits imposed by the systems that consume the report and the
annotations.

For configurable values, see models.py (ReportConfig, AnnotationsConfig, etc.).
"""

# =============================================================================
# Annotation Limits
# =============================================================================

MAX_ANNOTATIONS = 50
"""Hosting systems accept at most this many annotations per request."""

ANNOTATION_TITLE_MAX = 255
"""Maximum annotation title length (characters)."""

ANNOTATION_MESSAGE_MAX = 65535
"""Maximum annotation message / raw details length (characters)."""

# =============================================================================
# Report Limits
# =============================================================================

MAX_REPORT_LENGTH = 65535
"""Maximum rendered report length (characters) accepted by check-run summaries."""

# =============================================================================
# Files
# =============================================================================

REPO_CONFIG_FILENAME = ".test-reporter.yaml"
"""Per-repository configuration file, looked up in the working directory."""

ENV_PREFIX = "TEST_REPORTER__"
"""Environment variable prefix (TEST_REPORTER__SECTION__KEY)."""
