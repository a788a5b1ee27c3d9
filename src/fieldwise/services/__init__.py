"""Service layer — file-level operations behind the CLI commands.

Every service method returns a :class:`ServiceResult`.
"""
