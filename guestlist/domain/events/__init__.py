"""Domain Events emitted while talking to the vendor API."""
