"""jobfit: matching spiegabile tra profilo candidato e requisiti di un annuncio."""

__version__ = "0.1.0"
