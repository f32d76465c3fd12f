"""filefield Engine — errors, configuration, logging."""
