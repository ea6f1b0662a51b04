from cuid2 import Cuid

_CUID = Cuid()


def generate_cuid() -> str:
    """Primary key for new modules, roles, permissions and log entries"""
    return _CUID.generate()
