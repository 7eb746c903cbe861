"""
Services Package for the Transcode Planner.

Each service computes one part of the plan without executing anything:

- `bitrate`: target and maximum bitrate from the source bitrate.
- `encoder_args`: the encoder command line, including rate control and zones.
- `mux_planner`: the ordered muxer, timeline editor and MP4Box invocations.
- `transcode_setting`: `ConfigWrapper`, the per-run view over the config that
  owns the temporary file registry.
- `logging_service`: the YAML plan log.
"""
