"""Nash - trainable question answering service."""
