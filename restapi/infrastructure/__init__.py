"""Infrastructure — transports to the cluster service and logging setup."""
