"""HTTP shell over the generation core."""
