import fnmatch

LOCK_FILE_NAMES = {
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "Gemfile.lock",
    "poetry.lock",
    "Cargo.lock",
    "composer.lock",
    "Pipfile.lock",
    "uv.lock",
}

DEBUG_LOG_NAME = "review-this-debug.log"


def is_lock_file(file_name: str) -> bool:
    return file_name.rsplit("/", 1)[-1] in LOCK_FILE_NAMES


def is_excluded(filename: str, patterns) -> bool:
    """Return True if filename matches any exclude pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.py"
    - fnmatch globs on the basename: "*.min.js", "*.snap"
    - Directory names/prefixes: "migrations/", "vendor" (matches any file within that tree)
    """
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern):
            return True
        if fnmatch.fnmatch(filename.rsplit("/", 1)[-1], pattern):
            return True
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False
