"""
This package contains the core domain models of the Transcode Planner.

Modules:
    exceptions.py: The exception hierarchy. Planning errors are raised with
                   these types and propagate to the caller unchanged.
    media.py: Encoder, container and CM variant enumerations, the
              `VideoFormat` and `EncoderZone` value objects, and ffprobe
              helpers to fill a `VideoFormat`.
    temp_models.py: The temporary directory and `TempFileRegistry`, which names
                    and later removes every intermediate file of a run.
"""
