"""Validation of checklist answers and audit completion."""
from datetime import date, datetime

from shared.enums import RespostaItem, RESPOSTAS_PADRAO, StatusAuditoria, TipoRespostaCustomizada
from shared.schemas import AuditoriaItem


class ValidationError(Exception):
    """Raised when input validation fails."""
    pass


def _validar_data(resposta):
    try:
        datetime.fromisoformat(resposta)
        return
    except ValueError:
        pass
    try:
        date.fromisoformat(resposta)
    except ValueError:
        raise ValidationError("Resposta deve ser uma data válida")


def _validar_tipo_customizado(template_item, resposta):
    if resposta is None or not str(resposta).strip():
        raise ValidationError("Resposta é obrigatória para este tipo de item")

    tipo = template_item.tipo_resposta_customizada
    if tipo == TipoRespostaCustomizada.NUMERO:
        try:
            float(resposta)
        except (TypeError, ValueError):
            raise ValidationError("Resposta deve ser um número válido")
    elif tipo == TipoRespostaCustomizada.DATA:
        _validar_data(str(resposta).strip())
    elif tipo == TipoRespostaCustomizada.SELECT:
        if not template_item.opcoes_resposta:
            raise ValidationError("Item do tipo SELECT deve ter opções de resposta definidas")
        if resposta not in template_item.opcoes_resposta:
            raise ValidationError(
                f"Resposta inválida. Opções válidas: {', '.join(template_item.opcoes_resposta)}"
            )
    # TEXTO accepts any non-blank string


def validar_resposta(template_item, resposta):
    """Validate an answer against the item's answer type.

    Args:
        template_item (TemplateItem): The question being answered
        resposta (str): The submitted answer

    Returns:
        str: The answer, unchanged

    Raises:
        ValidationError: If the answer is not acceptable for the item
    """
    if template_item is not None and template_item.tipo_resposta_customizada:
        _validar_tipo_customizado(template_item, resposta)
    elif template_item is not None and template_item.usar_respostas_personalizadas and template_item.opcoes_resposta:
        if resposta not in template_item.opcoes_resposta:
            raise ValidationError(
                f"Resposta inválida. Opções válidas: {', '.join(template_item.opcoes_resposta)}"
            )
    elif resposta not in RESPOSTAS_PADRAO:
        raise ValidationError(f"Resposta inválida. Valores válidos: {', '.join(RESPOSTAS_PADRAO)}")
    return resposta


def validar_exigencias_opcao(item):
    """Check the photo/observation requirements of the chosen answer option.

    Raises:
        ValidationError: If the option requires an observation or a photo that is missing
    """
    if not isinstance(item, AuditoriaItem):
        item = AuditoriaItem.model_validate(item, from_attributes=True)
    if item.template_item is None or not item.resposta:
        return item

    config = item.template_item.config_da_opcao(item.resposta)
    if config is None:
        return item
    if config.observacao_obrigatoria and not (item.observacao or '').strip():
        raise ValidationError(f"Observação é obrigatória para a resposta '{item.resposta}'")
    if config.foto_obrigatoria and item.quantidade_fotos < 1:
        raise ValidationError(f"Foto é obrigatória para a resposta '{item.resposta}'")
    return item


def validar_finalizacao(itens):
    """Ensure every mandatory item was evaluated before an audit is finalized.

    Returns:
        StatusAuditoria: FINALIZADA when the audit may be closed

    Raises:
        ValidationError: With the count of mandatory items still unanswered
    """
    pendentes = 0
    for bruto in itens:
        if isinstance(bruto, AuditoriaItem):
            item = bruto
        else:
            item = AuditoriaItem.model_validate(bruto, from_attributes=True)
        obrigatorio = item.template_item is not None and item.template_item.obrigatorio
        if obrigatorio and (not item.resposta or item.resposta == RespostaItem.NAO_AVALIADO):
            pendentes += 1
    if pendentes:
        raise ValidationError(f"Existem {pendentes} itens obrigatórios não avaliados")
    return StatusAuditoria.FINALIZADA
