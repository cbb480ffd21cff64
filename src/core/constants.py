"""Core constants used across feedprep modules.

This module centralizes schema names, file naming rules, and defaults.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

import re

RAW_FIELD_NAMES = (
    "discussionid",
    "discussiontype",
    "entityid",
    "entitytype",
    "discussioncreatedat",
    "score",
)
NORMALIZED_FIELD_NAMES = (
    "discussionId",
    "discussionType",
    "entityId",
    "entityType",
    "discussionCreatedAt",
    "score",
)
KEY_FIELD_NAME = "discussionId"
ENTITY_TYPE_FIELD_NAME = "entityType"
SCORE_FIELD_NAME = "score"
ENTITY_TYPE_SOURCE_VALUE = "update"
ENTITY_TYPE_TARGET_VALUE = "workspace"
DEFAULT_FIELD_VALUE = ""
DEFAULT_SCORE_VALUE = "0"
DEFAULT_SCORE_SCALE_FACTOR = 10000.0

FIELD_SEPARATOR = ","
QUOTE_CHARACTER = '"'
ROW_SEPARATOR = "\n"
ARTIFACT_ENCODING = "utf-8"
ARTIFACT_SUFFIX = ".csv"
TRANSFORMED_NAME_SUFFIX = "_transformed"
REMOVAL_REPORT_SUFFIX = "-removed-entries"

SNAPSHOT_FILE_PREFIX = "prod_feed"
SNAPSHOT_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
SNAPSHOT_FILE_PATTERN = re.compile(r"^prod_feed_\d{8}_\d{6}\.csv$")

DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_POLL_INTERVAL_SECONDS = 2.0
DEFAULT_MAX_POLL_ATTEMPTS = 60
DEFAULT_QUERY_PAGE_SIZE = 25
DEFAULT_WORK_DIR_NAME = "temp"
DEFAULT_LOG_LEVEL = "INFO"
SUPPORTED_PROFILE_VERSION = 1
