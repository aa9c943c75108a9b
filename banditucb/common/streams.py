"""Stream name constants for Redis messaging."""

COMMAND_STREAM = "banditucb:commands"
REPLY_STREAM = "banditucb:replies"
SNAPSHOT_PREFIX = "banditucb:snapshot:"
OFFSET_KEY = "banditucb:offset:commands"
