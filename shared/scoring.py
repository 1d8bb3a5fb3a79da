"""Scoring rules for checklist answers.

The same rules run on the client for live feedback and on the server when an
answer is stored or an audit is aggregated, so everything here is pure and
never raises: a missing or unreadable template item is worth 0.

Score of an answer, in order:

1. The option's config carries a number: that number.
2. The option's config carries an explicit null: 0.
3. Sequential rule: ``base - index`` where ``index`` is the answer's position
   in the ordered answer set (unknown answer: 0) and ``base`` is the number
   configured for the first answer of the set (1 when it has none).
"""
import logging
import math
from collections.abc import Mapping

from pydantic import ValidationError as PydanticValidationError

from shared.enums import OrigemPontuacao, RespostaItem
from shared.schemas import (
    AuditoriaItem, GrupoMetricas, ResolucaoPontuacao, ResumoAuditoria, TemplateItem,
    SEM_GRUPO_ID, SEM_GRUPO_NOME
)

logger = logging.getLogger(__name__)

PONTUACAO_BASE_PADRAO = 1


def _como_template_item(template_item):
    """Coerce a TemplateItem-shaped record; anything unusable becomes None.

    Mappings are read by key, any other object (ORM row, dataclass) by attribute.
    """
    if template_item is None or isinstance(template_item, TemplateItem):
        return template_item
    if isinstance(template_item, Mapping):
        template_item = dict(template_item)
    try:
        return TemplateItem.model_validate(template_item, from_attributes=True)
    except PydanticValidationError as e:
        logger.warning(
            f"Ignoring unusable template item ({type(template_item).__name__}) while scoring: "
            f"{e.error_count()} error(s)"
        )
        return None


def resolver_pontuacao_configurada(template_item, valor_resposta):
    """Look up the score configured for ``valor_resposta``.

    Returns:
        ResolucaoPontuacao: EXPLICITA with the value when the option config has a
        number or an explicit null, SEQUENCIAL otherwise.
    """
    item = _como_template_item(template_item)
    if item is None:
        return ResolucaoPontuacao.sequencial()
    config = item.config_da_opcao(valor_resposta)
    if config is None:
        return ResolucaoPontuacao.sequencial()
    return config.resolver_pontuacao()


def _pontuacao_sequencial(item, valor_resposta):
    opcoes = item.opcoes_ordenadas()
    if valor_resposta not in opcoes:
        return 0
    indice = opcoes.index(valor_resposta)

    config_primeira = item.config_da_opcao(opcoes[0])
    base = config_primeira.pontuacao_numerica() if config_primeira else None
    if base is None:
        base = PONTUACAO_BASE_PADRAO
    return base - indice


def calcular_pontuacao_opcao(template_item, valor_resposta):
    """Score of answering ``template_item`` with ``valor_resposta``.

    Args:
        template_item: TemplateItem, a mapping in the API's shape, or None
        valor_resposta (str): The chosen answer value

    Returns:
        int | float: The score (0 when the item is absent)
    """
    item = _como_template_item(template_item)
    if item is None:
        return 0

    resolucao = resolver_pontuacao_configurada(item, valor_resposta)
    if resolucao.origem == OrigemPontuacao.EXPLICITA:
        return resolucao.valor
    return _pontuacao_sequencial(item, valor_resposta)


def get_pontuacao_maxima_item(template_item):
    """Best attainable score for an item.

    Every answer of the ordered set is scored and the maximum is returned, so
    explicit configs that are not decreasing are handled correctly.
    """
    item = _como_template_item(template_item)
    if item is None:
        return 0
    opcoes = item.opcoes_ordenadas()
    if not opcoes:
        return 0
    return max(calcular_pontuacao_opcao(item, valor) for valor in opcoes)


def calcular_pontuacoes_em_sequencia(pontuacao_primeira, quantidade):
    """Decreasing scores starting at ``pontuacao_primeira``.

    >>> calcular_pontuacoes_em_sequencia(1, 4)
    [1, 0, -1, -2]
    """
    return [pontuacao_primeira - i for i in range(max(0, quantidade))]


def primeira_opcao_eh_mais_favoravel(template_item):
    """Whether the first answer of the ordered set is among the best scored.

    The sequential rule assumes it is; authoring tools use this to warn when a
    custom answer set contradicts that assumption.
    """
    item = _como_template_item(template_item)
    if item is None:
        return True
    opcoes = item.opcoes_ordenadas()
    if not opcoes:
        return True
    return calcular_pontuacao_opcao(item, opcoes[0]) >= get_pontuacao_maxima_item(item)


def pontuar_resposta(template_item, resposta):
    """Score stored on an answered item. Blank answers are worth 0."""
    if not resposta:
        return 0
    return calcular_pontuacao_opcao(template_item, resposta)


def _percentual(obtida, possivel):
    if possivel <= 0:
        return 0.0
    valor = obtida / possivel * 100
    if math.isnan(valor) or math.isinf(valor):
        return 0.0
    return float(valor)


def calcular_metricas_grupos(itens):
    """Aggregate answered items per checklist group.

    Args:
        itens: Iterable of AuditoriaItem (or mappings in the API's shape)

    Returns:
        list[GrupoMetricas]: One entry per group, sorted by group order
    """
    grupos = {}
    for bruto in itens:
        if isinstance(bruto, AuditoriaItem):
            item = bruto
        else:
            item = AuditoriaItem.model_validate(bruto, from_attributes=True)
        template = item.template_item
        grupo_id = (template.grupo_id if template else None) or SEM_GRUPO_ID

        metricas = grupos.get(grupo_id)
        if metricas is None:
            metricas = GrupoMetricas(
                grupo_id=grupo_id,
                nome=(template.grupo_nome if template else None) or SEM_GRUPO_NOME,
                ordem=template.grupo_ordem if template else 0,
            )
            grupos[grupo_id] = metricas

        metricas.total_itens += 1
        metricas.pontuacao_possivel += get_pontuacao_maxima_item(template)
        metricas.pontuacao_obtida += item.pontuacao or 0
        if item.resposta == RespostaItem.NAO_CONFORME:
            metricas.nao_conformidades += 1
        elif item.resposta == RespostaItem.NAO_APLICAVEL:
            metricas.nao_aplicaveis += 1
        elif item.resposta == RespostaItem.NAO_AVALIADO:
            metricas.nao_respondidas += 1

    resultado = sorted(grupos.values(), key=lambda g: g.ordem)
    for metricas in resultado:
        metricas.aproveitamento = _percentual(metricas.pontuacao_obtida, metricas.pontuacao_possivel)
    return resultado


def resumir_auditoria(itens):
    """Totals across all groups plus the overall percentage score."""
    grupos = calcular_metricas_grupos(itens)
    possiveis = sum(g.pontuacao_possivel for g in grupos)
    realizados = sum(g.pontuacao_obtida for g in grupos)
    return ResumoAuditoria(
        pontos_possiveis=possiveis,
        pontos_realizados=realizados,
        nao_conformidades=sum(g.nao_conformidades for g in grupos),
        nao_aplicaveis=sum(g.nao_aplicaveis for g in grupos),
        nao_respondidas=sum(g.nao_respondidas for g in grupos),
        pontuacao_percentual=_percentual(realizados, possiveis),
        grupos=grupos,
    )
