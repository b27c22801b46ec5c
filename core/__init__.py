# Core package - foundational components
#
# Modules:
# - config: Application settings
# - logging: Structured logging
# - storage: Pluggable receipt storage backends (memory, MongoDB, PostgreSQL)
