class OrchestratorError(Exception):
    """Base class for errors raised while serving orchestration requests."""

    pass


class WorkflowNotFoundError(OrchestratorError):
    """Exception raised when a workflow, its definition or its endpoint cannot be located."""

    def __init__(self, workflow_id: str, reason: str = "not found"):
        self.workflow_id = workflow_id
        self.reason = reason
        super().__init__(f"Workflow '{workflow_id}': {reason}")


class InstanceNotFoundError(OrchestratorError):
    """Exception raised when the data index has no record of a process instance."""

    def __init__(self, instance_id: str):
        self.instance_id = instance_id
        super().__init__(f"Process instance '{instance_id}' not found")


class UnavailableError(OrchestratorError):
    """Exception raised when a collaborator (workflow engine or data index) fails.

    Covers transport errors, unexpected HTTP status codes, GraphQL errors and
    runtime introspection calls that return nothing usable.
    """

    pass


class SchemaError(OrchestratorError):
    """Exception raised when a declared input schema is structurally malformed.

    The offending composition member is kept on the exception so that callers
    can report it back to the client.
    """

    def __init__(self, member: str, message: str):
        self.member = member
        self.message = message
        super().__init__(f"Invalid input schema member '{member}': {message}")
