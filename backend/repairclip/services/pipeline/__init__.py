"""Pipeline - content matching and video assembly."""
