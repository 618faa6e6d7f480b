"""Starter .sopsfilter.toml template."""

DEFAULT_TOML = """\
# sopsfilter configuration
version = "1.0"

[sops]
binary = "sops"
# config_file = ".sops.yaml"    # defaults to sops' own lookup

[filter]
name = "sops"                   # git filter/diff driver name
# patterns = ["*.enc.yaml", "*.enc.json", "secrets/*.env"]

[log]
level = "warning"               # debug | info | warning | error
"""
