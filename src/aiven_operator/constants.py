"""Constants for the Aiven Operator."""

# API Group
API_GROUP = "aiven.io"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_POSTGRESQL = "PostgreSQL"
KIND_KAFKA = "Kafka"
KIND_REDIS = "Redis"
KIND_MYSQL = "MySQL"
KIND_DATABASE = "Database"

# Plurals used by the custom objects API
PLURALS = {
    KIND_POSTGRESQL: "postgresqls",
    KIND_KAFKA: "kafkas",
    KIND_REDIS: "redis",
    KIND_MYSQL: "mysqls",
    KIND_DATABASE: "databases",
}

# Labels
LABEL_MANAGED_BY = "app.kubernetes.io/managed-by"
LABEL_APP = "app"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Field Manager
FIELD_MANAGER = "aiven-operator"
CONTROLLER_NAME = "aiven-operator"

# Engine phases written to status.phase (absent means Uninitialized)
PHASE_PROVISIONING = "Provisioning"
PHASE_READY = "Ready"
PHASE_DELETING = "Deleting"
PHASE_ERROR = "Error"

# Remote service lifecycle states
SERVICE_STATE_RUNNING = "RUNNING"
VPC_STATE_ACTIVE = "ACTIVE"

# Condition Types
COND_READY = "Ready"
COND_PRECONDITIONS_MET = "PreconditionsMet"
COND_DEGRADED = "Degraded"
COND_RECONCILE_ERROR = "ReconcileError"

# Event Reasons
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_PRECONDITIONS_NOT_MET = "PreconditionsNotMet"
EVENT_REASON_CREATED = "Created"
EVENT_REASON_UPDATED = "Updated"
EVENT_REASON_RUNNING = "Running"
EVENT_REASON_DELETED = "Deleted"
EVENT_REASON_DELETE_PENDING = "DeletePending"

# Default key inside the auth secret holding the API token
DEFAULT_TOKEN_KEY = "token"
