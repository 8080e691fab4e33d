"""Starter .gitgutter.toml template."""

DEFAULT_TOML = """\
# gitgutter configuration
version = "1.0"

[diff]
revision = ""             # "" diffs against the index; "HEAD" against the last commit

[signs]
enabled = true
add = "+"
change = "~"
delete = "_"
topdelete = "‾"           # deletion above the first line
changedelete = "~_"       # changed line followed by removed lines

[blame]
enabled = true
show_summary = true

[conflict]
enabled = true            # parse <<<<<<< / ======= / >>>>>>> blocks in unmerged files

[navigation]
wrapscan = true           # next/prev wrap around the end of the file

[output]
format = "terminal"       # terminal | json | yaml
show_summary = true
"""
