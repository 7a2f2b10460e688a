"""Shared constants for ticketflow."""

# Git executable
GIT_CMD = "git"

# Default timeout for a single git invocation, in seconds
DEFAULT_GIT_TIMEOUT = 30.0

# How often a running git process is checked for cancellation, in seconds
PROCESS_POLL_INTERVAL = 0.05

# Git subcommands
SUBCMD_ADD = "add"
SUBCMD_CHECKOUT = "checkout"
SUBCMD_COMMIT = "commit"
SUBCMD_MERGE = "merge"
SUBCMD_MERGE_BASE = "merge-base"
SUBCMD_PULL = "pull"
SUBCMD_PUSH = "push"
SUBCMD_REV_LIST = "rev-list"
SUBCMD_REV_PARSE = "rev-parse"
SUBCMD_SHOW_REF = "show-ref"
SUBCMD_STATUS = "status"
SUBCMD_SYMBOLIC_REF = "symbolic-ref"
SUBCMD_WORKTREE = "worktree"

# Subcommands whose last argument names a branch
BRANCH_SUBCOMMANDS = frozenset({SUBCMD_CHECKOUT, SUBCMD_PUSH, SUBCMD_PULL, SUBCMD_MERGE})

# Worktree subcommands
WORKTREE_ADD = "add"
WORKTREE_LIST = "list"
WORKTREE_REMOVE = "remove"
WORKTREE_PRUNE = "prune"

# Flags
FLAG_ABBREV_REF = "--abbrev-ref"
FLAG_BRANCH = "-b"
FLAG_COUNT = "--count"
FLAG_FORCE = "--force"
FLAG_GIT_DIR = "--git-dir"
FLAG_IS_ANCESTOR = "--is-ancestor"
FLAG_MESSAGE = "-m"
FLAG_PORCELAIN = "--porcelain"
FLAG_QUIET = "--quiet"
FLAG_SHORT = "--short"
FLAG_SHOW_TOPLEVEL = "--show-toplevel"
FLAG_SQUASH = "--squash"
FLAG_UPSTREAM = "-u"
FLAG_VERIFY = "--verify"

# Refs
REF_HEAD = "HEAD"
REFS_HEADS_PREFIX = "refs/heads/"
ORIGIN_HEAD_REF = "refs/remotes/origin/HEAD"
ORIGIN_PREFIX = "origin/"

# Local branches tried, in order, when origin/HEAD is not set
DEFAULT_BRANCH_FALLBACKS = ("main", "master")
