# default AWS region used when neither the config nor the boto session provide one
AWS_REGION_US_EAST_1 = "us-east-1"

# max number of pooled HTTP connections per boto client
MAX_POOL_CONNECTIONS = 150

# strings which are considered truthy when parsing environment variables (compared lower-cased)
TRUE_STRINGS = ("1", "true")

# log levels accepted by MEDIALIVE_LOG
LOG_LEVELS = ("trace", "debug", "info", "warn", "error", "warning")
MEDIALIVE_LOG_TRACE = "trace"
TRACE_LOG_LEVELS = [MEDIALIVE_LOG_TRACE]

# error code botocore reports when a MediaLive entity does not exist
NOT_FOUND_ERROR_CODE = "NotFoundException"

# terminal lifecycle state reported by describe calls after a deletion completed
STATE_DELETED = "DELETED"

# tag keys with this prefix are managed by AWS and never reconciled
AWS_TAG_PREFIX = "aws:"
