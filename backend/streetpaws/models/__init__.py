# Importing every model registers it with Base.metadata and lets the
# Animal <-> Vaccination relationship resolve by class name.
from streetpaws.models.animal import Animal
from streetpaws.models.helpline import Helpline
from streetpaws.models.vaccination import Vaccination

__all__ = ["Animal", "Helpline", "Vaccination"]
