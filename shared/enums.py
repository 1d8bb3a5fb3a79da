import enum


class RespostaItem(str, enum.Enum):
    """Default answer values for a checklist item.

    Declaration order is the default ordered answer set used by the
    sequential scoring rule: the first value is the most favorable.
    """
    CONFORME = "conforme"
    NAO_CONFORME = "nao_conforme"
    NAO_APLICAVEL = "nao_aplicavel"
    NAO_AVALIADO = "nao_avaliado"


class TipoRespostaCustomizada(str, enum.Enum):
    """Free-form answer types a template item may ask for instead of a choice."""
    TEXTO = "texto"
    NUMERO = "numero"
    DATA = "data"
    SELECT = "select"


class CriticidadeItem(str, enum.Enum):
    BAIXA = "baixa"
    MEDIA = "media"
    ALTA = "alta"
    CRITICA = "critica"


class StatusAuditoria(str, enum.Enum):
    """Audit lifecycle stages."""
    EM_ANDAMENTO = "em_andamento"
    FINALIZADA = "finalizada"


class OrigemPontuacao(str, enum.Enum):
    """Where the score of an answer option comes from.

    EXPLICITA: the template author set a number (or null, meaning zero).
    SEQUENCIAL: nothing usable was configured, the sequential rule applies.
    """
    EXPLICITA = "explicita"
    SEQUENCIAL = "sequencial"


RESPOSTAS_PADRAO = tuple(r.value for r in RespostaItem)
