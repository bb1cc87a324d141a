"""User messages for SiteKeeper."""

# Success messages
SUCCESS_ADDED = "Password saved for '{website}'."
SUCCESS_DELETED = "Deleted entry {entry_id}."
SUCCESS_UPDATED = "Updated entry for '{website}'."
SUCCESS_CLEARED = "All passwords cleared."
SUCCESS_EXPORTED = "Exported {count} entry(ies) to '{path}'."
SUCCESS_IMPORTED = "Imported {count} entry(ies)."

# Error messages
ERROR_STORE_OPEN = "Error opening the password store: {error}"
ERROR_LOAD = "Error loading passwords: {error}"
ERROR_SAVE = "Error saving password: {error}"
ERROR_DELETE = "Failed to delete from disk. Reloading data. ({error})"
ERROR_UPDATE = "Failed to save changes to disk. Reloading data. ({error})"
ERROR_CLEAR = "Error clearing passwords: {error}"
ERROR_IMPORT = "Import failed: {error}"
ERROR_EXPORT = "Export failed: {error}"
ERROR_NOT_FOUND = "Entry {entry_id} not found."

# Info messages
INFO_NO_ENTRIES = "No passwords saved yet. Start by adding one!"
INFO_NO_MATCHES = "No entries found matching '{query}'."
INFO_CANCELLED = "Cancelled."

# Prompts
CONFIRM_CLEAR = (
    "Are you sure you want to delete ALL saved passwords? This cannot be undone."
)
