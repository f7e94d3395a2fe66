"""Constants for site builds."""

# Default directory layout, relative to the working directory
DEFAULT_OUTPUT_DIR = "output"
DEFAULT_PUBLIC_DIR = "public"
DEFAULT_ASSETS_DIR = "assets"

# URL segment and output sub-directory that fingerprinted assets live under
DEFAULT_ASSETS_ROUTE = "assets"

# Hex characters of the SHA-256 digest embedded in asset filenames
DIGEST_LENGTH = 7

# Shell used for build commands when $SHELL is unset
FALLBACK_SHELL = "sh"

# How often a running command is checked for cancellation or timeout
COMMAND_POLL_INTERVAL_S = 0.1

# Time a terminated command gets to exit before it is killed
COMMAND_TERMINATE_GRACE_S = 5.0

# Phase names used in BuildError messages
PHASE_REMOVE_OUTPUT = "remove output dir"
PHASE_CREATE_OUTPUT = "create output dir"
PHASE_COMMANDS = "run commands"
PHASE_ASSETS = "copy assets"
PHASE_PUBLIC = "copy public files"

COMPONENT_SITE = "site"
