"""Business modules: receiving and fulfillment, composed from kernel and engines."""
