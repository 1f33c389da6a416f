"""Starter .patchscan.toml template."""

DEFAULT_TOML = """\
# patchscan configuration
version = "1.0"

[scanner]
max_header_lines = 1024   # give up on a header block after this many lines

[output]
format = "terminal"       # terminal | json
git_prefixes = "keep"     # keep | strip (drop a/ and b/ from git names)

[logging]
level = "warning"         # debug | info | warning | error | critical
format = "console"        # console | json
"""
