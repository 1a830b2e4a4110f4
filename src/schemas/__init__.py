"""JSON schema validation for glTF inputs."""
