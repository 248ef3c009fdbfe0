from volumectl_core.test.util import no_volumed, volumed  # noqa: F401
