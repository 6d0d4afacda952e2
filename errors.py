class NotFoundError(Exception):
    """No row matches the requested id (and owner, where one applies)."""

    def __init__(self, resource: str, resource_id):
        self.resource = resource
        self.resource_id = str(resource_id)
        super().__init__(f"{resource} not found")
