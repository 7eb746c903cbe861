"""
Transcode Planner.

Turns a static transcode configuration and a description of the source streams
into the ordered encoder and muxer command lines that produce the final MP4 or
Matroska files, along with the names of every temporary file in between.

Subpackages:
    config: The YAML transcode configuration and shared constants.
    domain: Media types, the temporary file registry and the exceptions.
    services: Bitrate model, encoder arguments, mux planning and the run facade.
    pipeline: Assembly of the complete per-output command plan.
"""
