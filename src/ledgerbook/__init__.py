"""Lending and account ledger core."""


# Import main lazily so the domain layer loads without click
def __getattr__(name):
    if name == "main":
        from ledgerbook.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
