"""Developer tools for inspecting AVL traffic."""
