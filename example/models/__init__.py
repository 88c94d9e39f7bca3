from example.models.todo import Todo

__all__ = ["Todo"]
