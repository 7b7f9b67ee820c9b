"""Search and upload intake: raw user actions to geometry and focus requests."""
