from __future__ import annotations

from textwrap import dedent

PROPOSAL_PROMPTS = {
    "en": dedent(
        """
        Write an engaging linear story based on the following briefing: {briefing}
        IMPORTANT: return ONLY a summary of the story, without splitting it into scenes.
        Use one paragraph to introduce the premise, a few for the development and one for the ending.
        Do NOT split the text into scenes, character lists or numbered chapters.
        Write in English, with at most 300 words in total.
        """
    ).strip(),
    "pt": dedent(
        """
        Crie uma história linear envolvente baseada no seguinte briefing: {briefing}
        IMPORTANTE: retorne APENAS um resumo da história sem divisão em cenas.
        Use um parágrafo para introduzir a premissa, alguns para o desenvolvimento e um para o desfecho.
        NÃO divida o texto em cenas, personagens ou capítulos numerados.
        Escreva em português do Brasil, com no máximo 300 palavras totais.
        """
    ).strip(),
}

SCENE_PROMPTS = {
    "en": dedent(
        """
        Based on the following story: "{proposal}", create EXACTLY {count} sequential scenes.
        YOU MUST CREATE EXACTLY {count} SCENES, NO MORE AND NO LESS.

        EXPECTED FORMAT:
        For each scene, clearly provide:

        Scene 1:
        Title: [descriptive title]
        Description: [setting, characters, visuals]
        Narration: [what happens in the scene]
        Dialogue: [dialogue, if any]

        Scene 2:
        [and so on until Scene {count}]

        IMPORTANT:
        - Every scene must have a descriptive title
        - Descriptions must be visual and specific
        - Dialogue should sound natural and interesting
        - KEEP EXACTLY THE FORMAT ABOVE, with each item on its own line
        - REMEMBER: CREATE EXACTLY {count} SCENES, STARTING AT SCENE 1 AND ENDING AT SCENE {count}
        """
    ).strip(),
    "pt": dedent(
        """
        Baseado na seguinte história: "{proposal}", crie EXATAMENTE {count} cenas sequenciais.
        VOCÊ DEVE CRIAR EXATAMENTE {count} CENAS, NÃO MAIS E NÃO MENOS.

        FORMATO ESPERADO:
        Para cada cena, forneça claramente:

        Cena 1:
        Título: [título descritivo]
        Descrição: [ambiente, personagens, visuais]
        Narração: [o que acontece na cena]
        Diálogo: [diálogos se houver]

        Cena 2:
        [e assim por diante até a Cena {count}]

        IMPORTANTE:
        - Todo o texto deve estar em português do Brasil
        - Cada cena deve ter um título descritivo
        - As descrições devem ser visuais e específicas
        - Os diálogos devem ser naturais e interessantes
        - MANTENHA EXATAMENTE O FORMATO ACIMA, com cada item em sua própria linha
        - LEMBRE-SE: CRIAR EXATAMENTE {count} CENAS, COMEÇANDO NA CENA 1 E TERMINANDO NA CENA {count}
        """
    ).strip(),
}

STYLE_PROMPTS = {
    "en": dedent(
        """
        Based on the story: "{proposal}", write {count} detailed image descriptions
        in the visual style "{style}". Each description must:

        1. Show a different scene of the story
        2. Be detailed enough for an AI image generator
        3. Focus on visual elements such as characters, setting, lighting, colors and perspective

        Number each description (1., 2., etc.) and use detailed, visual language.
        """
    ).strip(),
    "pt": dedent(
        """
        Baseado na história: "{proposal}", crie {count} descrições detalhadas para imagens
        no estilo visual "{style}". Cada descrição deve:

        1. Representar uma cena diferente da história
        2. Ser detalhada o suficiente para um gerador de imagens AI
        3. Focar em elementos visuais como personagens, ambiente, iluminação, cores, perspectiva
        4. Estar em português do Brasil

        Enumere cada descrição (1., 2., etc.) e use linguagem detalhada e visual.
        """
    ).strip(),
}


def _template(templates: dict[str, str], locale: str) -> str:
    # The multilingual parser accepts either language; prompts fall back to English.
    return templates.get(locale, templates["en"])


def render_proposal_prompt(briefing: str, locale: str = "en") -> str:
    return _template(PROPOSAL_PROMPTS, locale).format(briefing=briefing.strip())


def render_scene_prompt(proposal: str, count: int, locale: str = "en") -> str:
    return _template(SCENE_PROMPTS, locale).format(proposal=proposal.strip(), count=count)


def render_style_prompt(proposal: str, style: str, count: int, locale: str = "en") -> str:
    return _template(STYLE_PROMPTS, locale).format(
        proposal=proposal.strip(),
        style=style.strip(),
        count=count,
    )
