"""Entity normalization, marker rendering and selection state for the operations map."""
