# config.py
# Defaults shared by the loader, the runner and the CLI.

DEFAULT_WORKFLOW_FILE = ".palm-compose.toml"

# CLI options that can also come from the environment
ENV_WORKFLOW_FILE = "PALM_COMPOSE_FILE"
ENV_WORKERS = "PALM_COMPOSE_WORKERS"

# Verbose mode prints at most this many characters of a step's output
OUTPUT_PREVIEW_CHARS = 500

# Separator between resolved input parts
INPUT_JOINER = "\n\n"

# `git:<query>` input parts and the git arguments that answer them
GIT_QUERIES = {
    "diff": ["diff"],
    "log": ["log", "--oneline", "-10"],
}

SHELL = "sh"
