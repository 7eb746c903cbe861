"""
Configuration Package for the Transcode Planner.

This package holds the static settings of the application, kept apart from the
planning logic:

- `common`: shared constants (logging format, temporary directory naming,
  default tool names) and the optional `config.user.yaml` tool directory.
- `settings`: the immutable `TranscodeConfig` snapshot and its YAML loader.
"""
