"""Request workflow: domain model, lifecycle service and record stores."""
