"""HTTP interface of the Pictodo service."""
