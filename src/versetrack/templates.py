"""Default file contents written by VerseTrack."""

DEFAULT_CONFIG_YAML = """\
# VerseTrack configuration

# Where the reading progress is stored. '~' is expanded; relative paths are
# resolved against this directory. Defaults to 'reading_progress.yaml' here.
# progress_path: '~/Documents/reading_progress.yaml'

# Optional custom book/chapter/verse structure (same layout as the bundled KJV file).
# structure_path: 'my_structure.yaml'

# How many days the 'recent' report looks back.
recent_days: 7
"""
