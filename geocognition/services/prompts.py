"""Phase-specific instructions and the structured response schema."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..models.base import Language, TrustedLocation

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "locationName": {"type": "STRING"},
        "description": {"type": "STRING"},
        "confidenceScore": {"type": "NUMBER"},
        "forensicAnalysis": {
            "type": "OBJECT",
            "properties": {
                "summary": {"type": "STRING"},
                "isAltered": {"type": "BOOLEAN"},
                "alterationConfidence": {"type": "NUMBER"},
            },
            "required": ["summary", "isAltered", "alterationConfidence"],
        },
        "environmentAnalysis": {
            "type": "OBJECT",
            "properties": {
                "type": {"type": "STRING", "enum": ["interior", "exterior", "unknown"]},
                "details": {"type": "STRING"},
            },
            "required": ["type", "details"],
        },
    },
    "required": [
        "locationName",
        "description",
        "confidenceScore",
        "forensicAnalysis",
        "environmentAnalysis",
    ],
}


@dataclass(slots=True, frozen=True)
class PromptSet:
    """Instructions for each remote phase of one run."""

    language: Language
    feature_extraction: str
    hypothesis: str
    synthesis: str


# Placeholders: {features}, {hypothesis}, {latitude}, {longitude}.
_TEMPLATES: dict[Language, dict[str, str]] = {
    Language.EN: {
        "feature_extraction": (
            "Act as 'GeoCognition AI', a geospatial intelligence system. Examine the image and "
            "list every clue that could help locate it: landmarks, readable text and signage, "
            "languages and scripts, architecture, vegetation, terrain, road markings, vehicles, "
            "license plates, climate and the position of the sun. Be factual and concise and do "
            "not guess a final location yet. Respond in English."
        ),
        "hypothesis": (
            "Act as 'GeoCognition AI'. Using web search, find the single most likely location "
            "matching these visual clues extracted from a photograph:\n{features}\n"
            "Answer with one line containing only the most specific place name you can justify "
            "(for example \"Bárcena Mayor, Cantabria, Spain\"). Respond in English."
        ),
        "synthesis": (
            "Act as 'GeoCognition AI', a geospatial intelligence system. Your mission is to "
            "generate a final report by analyzing an image.\n"
            "**Your Task:**\n"
            "1. **Final Conclusion:** Determine the most likely location. Provide the most "
            "specific, recognizable place name possible (e.g., \"Bárcena Mayor, Cantabria\") "
            "instead of generic descriptions.\n"
            "2. **Forensic Analysis (AI/Alteration):** Inspect the image for artifacts of AI "
            "generation or digital manipulation. Assess its authenticity. If the image is not "
            "altered, alterationConfidence should be 0.\n"
            "3. **Environment Analysis (Indoor/Outdoor):** Determine if the scene is indoor or "
            "outdoor and explain the implications for geolocation.\n"
            "4. **Confidence Score:** Calculate this based on the uniqueness and clarity of "
            "identifiable features. A famous landmark in high resolution should be 90-95%. A "
            "specific but less known place (like a particular street corner) 75-85%. A generic "
            "landscape (forest, beach) with few unique features 40-60%. If you cannot determine "
            "a location, the score should be below 20%.\n"
            "Generate your report in the requested JSON format. If the data is inconclusive, "
            "state it clearly. Respond in English."
        ),
        "trusted_preamble": (
            "IMPORTANT: The photo was taken at the verified GPS coordinates {latitude}, "
            "{longitude}. Treat this position as ground truth. Do not infer the location "
            "independently; name the place at these coordinates and use the image to describe "
            "it and to perform the forensic and environment analysis."
        ),
        "hypothesis_block": "Preliminary location hypothesis from a web search: {hypothesis}",
        "features_block": "Visual clues extracted earlier:\n{features}",
        "trusted_hypothesis": "Verified GPS coordinates: {latitude}, {longitude}",
    },
    Language.ES: {
        "feature_extraction": (
            "Actúa como 'GeoCognition AI', un sistema de inteligencia geoespacial. Examina la "
            "imagen y enumera todas las pistas que ayuden a ubicarla: monumentos, textos y "
            "carteles legibles, idiomas y alfabetos, arquitectura, vegetación, relieve, marcas "
            "viales, vehículos, matrículas, clima y posición del sol. Sé objetivo y conciso y no "
            "propongas todavía una ubicación final. Responde en español."
        ),
        "hypothesis": (
            "Actúa como 'GeoCognition AI'. Usando la búsqueda web, encuentra la ubicación más "
            "probable que coincida con estas pistas visuales extraídas de una fotografía:\n"
            "{features}\n"
            "Responde con una sola línea que contenga únicamente el nombre de lugar más "
            "específico que puedas justificar (por ejemplo \"Bárcena Mayor, Cantabria, España\"). "
            "Responde en español."
        ),
        "synthesis": (
            "Actúa como 'GeoCognition AI', un sistema de inteligencia geoespacial. Tu misión es "
            "generar un informe final analizando una imagen.\n"
            "**Tu Tarea:**\n"
            "1. **Conclusión Final:** Determina la ubicación más probable. Proporciona el nombre "
            "del lugar más específico y reconocible posible (ej: \"Bárcena Mayor, Cantabria\") "
            "en lugar de descripciones genéricas.\n"
            "2. **Análisis Forense (IA/Alteración):** Inspecciona la imagen en busca de "
            "artefactos de generación por IA o manipulación digital. Evalúa su autenticidad. Si "
            "la imagen no está alterada, alterationConfidence debe ser 0.\n"
            "3. **Análisis de Entorno (Interior/Exterior):** Determina si la escena es interior "
            "o exterior y explica las implicaciones para la geolocalización.\n"
            "4. **Nivel de Confianza:** Calcúlalo basándote en la singularidad y claridad de las "
            "características identificables. Un monumento famoso en alta resolución debería "
            "tener un 90-95%. Un lugar específico pero menos conocido (como una esquina "
            "particular) un 75-85%. Un paisaje genérico (bosque, playa) con pocas "
            "características únicas un 40-60%. Si no puedes determinar una ubicación, la "
            "puntuación debe ser inferior al 20%.\n"
            "Genera tu informe en el formato JSON solicitado. Si los datos no son concluyentes, "
            "indícalo claramente. Responde en español."
        ),
        "trusted_preamble": (
            "IMPORTANTE: La foto se tomó en las coordenadas GPS verificadas {latitude}, "
            "{longitude}. Trata esta posición como verdad absoluta. No deduzcas la ubicación por "
            "tu cuenta; nombra el lugar situado en estas coordenadas y usa la imagen para "
            "describirlo y para realizar los análisis forense y de entorno."
        ),
        "hypothesis_block": "Hipótesis preliminar de ubicación obtenida por búsqueda web: {hypothesis}",
        "features_block": "Pistas visuales extraídas previamente:\n{features}",
        "trusted_hypothesis": "Coordenadas GPS verificadas: {latitude}, {longitude}",
    },
    Language.ZH: {
        "feature_extraction": (
            "扮演‘地理认知AI’，一个地理空间情报系统。检查图像并列出所有有助于定位的线索：地标、可读的文字和"
            "标识、语言和文字系统、建筑风格、植被、地形、道路标线、车辆、车牌、气候以及太阳位置。请保持客观"
            "简洁，暂时不要给出最终位置。请用中文回答。"
        ),
        "hypothesis": (
            "扮演‘地理认知AI’。使用网络搜索，找出与以下从照片中提取的视觉线索最匹配的位置：\n{features}\n"
            "只用一行回答，仅包含您能证明的最具体的地名（例如“西班牙坎塔布里亚的巴尔塞纳马约尔”）。"
            "请用中文回答。"
        ),
        "synthesis": (
            "扮演‘地理认知AI’，一个地理空间情报系统。您的任务是通过分析图像生成最终报告。\n"
            "**您的任务：**\n"
            "1. **最终结论：** 确定最可能的位置。提供最具体、最可识别的地名（例如，“坎塔布里亚的巴尔塞纳"
            "马约尔”），而不是通用的描述。\n"
            "2. **法证分析（AI/篡改）：** 检查图像中是否存在AI生成或数字篡改的痕迹。评估其真实性。如果图像"
            "未被篡改，alterationConfidence 应为 0。\n"
            "3. **环境分析（室内/室外）：** 判断场景是室内还是室外，并解释其对地理定位的影响。\n"
            "4. **置信度分数：** 根据可识别特征的独特性和清晰度进行计算。高分辨率的著名地标应为90-95%。"
            "特定但不太知名的地点（如某个街角）为75-85%。几乎没有独特特征的普通景观（森林、海滩）为40-60%。"
            "如果无法确定位置，分数应低于20%。\n"
            "以请求的JSON格式生成您的报告。如果数据不确定，请明确说明。请用中文回答。"
        ),
        "trusted_preamble": (
            "重要：这张照片拍摄于经过验证的GPS坐标 {latitude}, {longitude}。请将该位置视为确定事实。"
            "不要自行推断位置；请说出该坐标处的地点名称，并利用图像对其进行描述，同时完成法证分析和环境分析。"
        ),
        "hypothesis_block": "通过网络搜索得到的初步位置假设：{hypothesis}",
        "features_block": "先前提取的视觉线索：\n{features}",
        "trusted_hypothesis": "经过验证的GPS坐标：{latitude}, {longitude}",
    },
    Language.HI: {
        "feature_extraction": (
            "‘जियोकॉग्निशन एआई’ के रूप में कार्य करें, जो एक भू-स्थानिक खुफिया प्रणाली है। छवि की जांच करें "
            "और उन सभी सुरागों की सूची बनाएं जो इसका स्थान पता लगाने में मदद कर सकते हैं: स्थलचिह्न, पढ़ने "
            "योग्य पाठ और संकेत, भाषाएं और लिपियां, वास्तुकला, वनस्पति, भूभाग, सड़क चिह्न, वाहन, नंबर प्लेट, "
            "जलवायु और सूर्य की स्थिति। तथ्यात्मक और संक्षिप्त रहें और अभी अंतिम स्थान का अनुमान न लगाएं। "
            "कृपया हिंदी में उत्तर दें।"
        ),
        "hypothesis": (
            "‘जियोकॉग्निशन एआई’ के रूप में कार्य करें। वेब खोज का उपयोग करके, किसी तस्वीर से निकाले गए इन "
            "दृश्य सुरागों से मेल खाने वाला सबसे संभावित स्थान खोजें:\n{features}\n"
            "केवल एक पंक्ति में उत्तर दें जिसमें सबसे विशिष्ट स्थान का नाम हो जिसे आप उचित ठहरा सकें "
            "(जैसे, \"बार्सेना मेयर, कैंटैब्रिया, स्पेन\")। कृपया हिंदी में उत्तर दें।"
        ),
        "synthesis": (
            "‘जियोकॉग्निशन एआई’ के रूप में कार्य करें, जो एक भू-स्थानिक खुफिया प्रणाली है। आपका मिशन एक "
            "छवि का विश्लेषण करके एक अंतिम रिपोर्ट तैयार करना है।\n"
            "**आपका कार्य:**\n"
            "1. **अंतिम निष्कर्ष:** सबसे संभावित स्थान का निर्धारण करें। सामान्य विवरणों के बजाय सबसे "
            "विशिष्ट, पहचानने योग्य स्थान का नाम प्रदान करें (जैसे, \"बार्सेना मेयर, कैंटैब्रिया\")।\n"
            "2. **फोरेंसिक विश्लेषण (एआई/परिवर्तन):** एआई पीढ़ी या डिजिटल हेरफेर की कलाकृतियों के लिए छवि "
            "का निरीक्षण करें। इसकी प्रामाणिकता का आकलन करें। यदि छवि में बदलाव नहीं किया गया है, तो "
            "alterationConfidence 0 होना चाहिए।\n"
            "3. **पर्यावरण विश्लेषण (इनडोर/आउटडोर):** निर्धारित करें कि दृश्य इनडोर है या आउटडोर और "
            "जियोलोकेशन के लिए निहितार्थों की व्याख्या करें।\n"
            "4. **विश्वास स्कोर:** इसे पहचानने योग्य विशेषताओं की विशिष्टता और स्पष्टता के आधार पर गणना "
            "करें। उच्च रिज़ॉल्यूशन में एक प्रसिद्ध स्थलचिह्न 90-95% होना चाहिए। एक विशिष्ट लेकिन कम ज्ञात "
            "स्थान (जैसे एक विशेष सड़क का कोना) 75-85%। कुछ अनूठी विशेषताओं वाला एक सामान्य परिदृश्य "
            "(जंगल, समुद्र तट) 40-60%। यदि आप किसी स्थान का निर्धारण नहीं कर सकते हैं, तो स्कोर 20% से कम "
            "होना चाहिए।\n"
            "अनुरोधित JSON प्रारूप में अपनी रिपोर्ट तैयार करें। यदि डेटा अनिर्णायक है, तो इसे स्पष्ट रूप से "
            "बताएं। कृपया हिंदी में उत्तर दें।"
        ),
        "trusted_preamble": (
            "महत्वपूर्ण: यह तस्वीर सत्यापित जीपीएस निर्देशांक {latitude}, {longitude} पर ली गई थी। इस "
            "स्थिति को निश्चित सत्य मानें। स्थान का स्वतंत्र रूप से अनुमान न लगाएं; इन निर्देशांकों पर स्थित "
            "स्थान का नाम बताएं और छवि का उपयोग उसका वर्णन करने तथा फोरेंसिक और पर्यावरण विश्लेषण के लिए करें।"
        ),
        "hypothesis_block": "वेब खोज से प्राप्त प्रारंभिक स्थान परिकल्पना: {hypothesis}",
        "features_block": "पहले निकाले गए दृश्य सुराग:\n{features}",
        "trusted_hypothesis": "सत्यापित जीपीएस निर्देशांक: {latitude}, {longitude}",
    },
    Language.FR: {
        "feature_extraction": (
            "Agissez en tant que 'GeoCognition AI', un système d'intelligence géospatiale. "
            "Examinez l'image et listez tous les indices permettant de la localiser : monuments, "
            "textes et panneaux lisibles, langues et écritures, architecture, végétation, relief, "
            "marquages routiers, véhicules, plaques d'immatriculation, climat et position du "
            "soleil. Soyez factuel et concis et ne proposez pas encore d'emplacement final. "
            "Répondez en français."
        ),
        "hypothesis": (
            "Agissez en tant que 'GeoCognition AI'. À l'aide de la recherche web, trouvez "
            "l'emplacement le plus probable correspondant à ces indices visuels extraits d'une "
            "photographie :\n{features}\n"
            "Répondez par une seule ligne contenant uniquement le nom de lieu le plus précis que "
            "vous pouvez justifier (par ex. \"Bárcena Mayor, Cantabrie, Espagne\"). Répondez en "
            "français."
        ),
        "synthesis": (
            "Agissez en tant que 'GeoCognition AI', un système d'intelligence géospatiale. Votre "
            "mission est de générer un rapport final en analysant une image.\n"
            "**Votre Tâche :**\n"
            "1. **Conclusion Finale :** Déterminez l'emplacement le plus probable. Fournissez le "
            "nom de lieu le plus spécifique et reconnaissable possible (par ex., \"Bárcena Mayor, "
            "Cantabrie\") au lieu de descriptions génériques.\n"
            "2. **Analyse Forensique (IA/Altération) :** Inspectez l'image à la recherche "
            "d'artefacts de génération par IA ou de manipulation numérique. Évaluez son "
            "authenticité. Si l'image n'est pas altérée, alterationConfidence doit valoir 0.\n"
            "3. **Analyse de l'Environnement (Intérieur/Extérieur) :** Déterminez si la scène est "
            "à l'intérieur ou à l'extérieur et expliquez les implications pour la géolocalisation.\n"
            "4. **Score de Confiance :** Calculez-le en fonction de l'unicité et de la clarté des "
            "éléments identifiables. Un monument célèbre en haute résolution devrait obtenir "
            "90-95%. Un endroit spécifique mais moins connu (comme un coin de rue particulier) "
            "75-85%. Un paysage générique (forêt, plage) avec peu de caractéristiques uniques "
            "40-60%. Si vous ne pouvez pas déterminer un emplacement, le score doit être "
            "inférieur à 20%.\n"
            "Générez votre rapport au format JSON demandé. Si les données ne sont pas "
            "concluantes, indiquez-le clairement. Répondez en français."
        ),
        "trusted_preamble": (
            "IMPORTANT : la photo a été prise aux coordonnées GPS vérifiées {latitude}, "
            "{longitude}. Considérez cette position comme une vérité établie. Ne déduisez pas "
            "l'emplacement par vous-même ; nommez le lieu situé à ces coordonnées et utilisez "
            "l'image pour le décrire et pour réaliser les analyses forensique et "
            "environnementale."
        ),
        "hypothesis_block": "Hypothèse de localisation préliminaire issue d'une recherche web : {hypothesis}",
        "features_block": "Indices visuels extraits précédemment :\n{features}",
        "trusted_hypothesis": "Coordonnées GPS vérifiées : {latitude}, {longitude}",
    },
    Language.RU: {
        "feature_extraction": (
            "Действуйте как 'GeoCognition AI', геопространственная разведывательная система. "
            "Изучите изображение и перечислите все признаки, которые помогут определить место "
            "съемки: достопримечательности, читаемые надписи и вывески, языки и алфавиты, "
            "архитектуру, растительность, рельеф, дорожную разметку, транспорт, номерные знаки, "
            "климат и положение солнца. Будьте точны и кратки и пока не называйте окончательное "
            "местоположение. Отвечайте на русском языке."
        ),
        "hypothesis": (
            "Действуйте как 'GeoCognition AI'. С помощью веб-поиска найдите наиболее вероятное "
            "место, соответствующее этим визуальным признакам, извлеченным из фотографии:\n"
            "{features}\n"
            "Ответьте одной строкой, содержащей только самое конкретное название места, которое "
            "вы можете обосновать (например, \"Барсена-Майор, Кантабрия, Испания\"). Отвечайте "
            "на русском языке."
        ),
        "synthesis": (
            "Действуйте как 'GeoCognition AI', геопространственная разведывательная система. "
            "Ваша миссия — составить итоговый отчет на основе анализа изображения.\n"
            "**Ваша задача:**\n"
            "1. **Окончательный вывод:** Определите наиболее вероятное местоположение. Укажите "
            "наиболее конкретное и узнаваемое название места (например, \"Барсена-Майор, "
            "Кантабрия\"), а не общие описания.\n"
            "2. **Криминалистический анализ (ИИ/Изменение):** Осмотрите изображение на наличие "
            "артефактов генерации ИИ или цифровой обработки. Оцените его подлинность. Если "
            "изображение не изменено, alterationConfidence должно быть равно 0.\n"
            "3. **Анализ окружения (В помещении/На улице):** Определите, находится ли сцена в "
            "помещении или на улице, и объясните последствия для геолокации.\n"
            "4. **Оценка достоверности:** Рассчитайте ее на основе уникальности и четкости "
            "опознаваемых признаков. Известная достопримечательность в высоком разрешении должна "
            "иметь оценку 90-95%. Конкретное, но менее известное место (например, определенный "
            "угол улицы) — 75-85%. Обычный пейзаж (лес, пляж) с небольшим количеством уникальных "
            "черт — 40-60%. Если вы не можете определить местоположение, оценка должна быть ниже "
            "20%.\n"
            "Создайте отчет в запрашиваемом формате JSON. Если данные неубедительны, четко "
            "укажите это. Отвечайте на русском языке."
        ),
        "trusted_preamble": (
            "ВАЖНО: фотография сделана в проверенных GPS-координатах {latitude}, {longitude}. "
            "Считайте это местоположение достоверным. Не определяйте место самостоятельно; "
            "назовите место, находящееся в этих координатах, и используйте изображение для его "
            "описания, а также для криминалистического анализа и анализа окружения."
        ),
        "hypothesis_block": "Предварительная гипотеза о местоположении по результатам веб-поиска: {hypothesis}",
        "features_block": "Ранее извлеченные визуальные признаки:\n{features}",
        "trusted_hypothesis": "Проверенные GPS-координаты: {latitude}, {longitude}",
    },
    Language.PT: {
        "feature_extraction": (
            "Aja como 'GeoCognition AI', um sistema de inteligência geoespacial. Examine a imagem "
            "e liste todas as pistas que possam ajudar a localizá-la: marcos, textos e placas "
            "legíveis, idiomas e alfabetos, arquitetura, vegetação, relevo, sinalização viária, "
            "veículos, placas de matrícula, clima e posição do sol. Seja objetivo e conciso e "
            "ainda não proponha uma localização final. Responda em português."
        ),
        "hypothesis": (
            "Aja como 'GeoCognition AI'. Usando a pesquisa na web, encontre a localização mais "
            "provável que corresponda a estas pistas visuais extraídas de uma fotografia:\n"
            "{features}\n"
            "Responda com uma única linha contendo apenas o nome de lugar mais específico que "
            "você puder justificar (por exemplo, \"Bárcena Mayor, Cantábria, Espanha\"). Responda "
            "em português."
        ),
        "synthesis": (
            "Aja como 'GeoCognition AI', um sistema de inteligência geoespacial. Sua missão é "
            "gerar um relatório final analisando uma imagem.\n"
            "**Sua Tarefa:**\n"
            "1. **Conclusão Final:** Determine a localização mais provável. Forneça o nome do "
            "local mais específico e reconhecível possível (por exemplo, \"Bárcena Mayor, "
            "Cantábria\") em vez de descrições genéricas.\n"
            "2. **Análise Forense (IA/Alteração):** Inspecione a imagem em busca de artefatos de "
            "geração por IA ou manipulação digital. Avalie sua autenticidade. Se a imagem não "
            "estiver alterada, alterationConfidence deve ser 0.\n"
            "3. **Análise do Ambiente (Interior/Exterior):** Determine se a cena é interna ou "
            "externa e explique as implicações para a geolocalização.\n"
            "4. **Pontuação de Confiança:** Calcule-a com base na singularidade e clareza das "
            "características identificáveis. Um marco famoso em alta resolução deve ter 90-95%. "
            "Um local específico mas menos conhecido (como uma esquina específica) 75-85%. Uma "
            "paisagem genérica (floresta, praia) com poucas características únicas 40-60%. Se "
            "não conseguir determinar uma localização, a pontuação deve ser inferior a 20%.\n"
            "Gere seu relatório no formato JSON solicitado. Se os dados forem inconclusivos, "
            "declare isso claramente. Responda em português."
        ),
        "trusted_preamble": (
            "IMPORTANTE: a foto foi tirada nas coordenadas GPS verificadas {latitude}, "
            "{longitude}. Trate esta posição como verdade absoluta. Não deduza a localização por "
            "conta própria; indique o nome do lugar nessas coordenadas e use a imagem para "
            "descrevê-lo e para realizar as análises forense e de ambiente."
        ),
        "hypothesis_block": "Hipótese preliminar de localização obtida por pesquisa na web: {hypothesis}",
        "features_block": "Pistas visuais extraídas anteriormente:\n{features}",
        "trusted_hypothesis": "Coordenadas GPS verificadas: {latitude}, {longitude}",
    },
}


def _templates(language: Language | str | None) -> tuple[Language, dict[str, str]]:
    resolved = Language.resolve(language)
    return resolved, _TEMPLATES.get(resolved, _TEMPLATES[Language.default()])


def _format_coordinate(value: float) -> str:
    return f"{value:.6f}"


def describe_trusted_location(
    location: TrustedLocation, language: Language | str | None = None
) -> str:
    """Return the hypothesis text used when coordinates are already known."""
    _, templates = _templates(language)
    return templates["trusted_hypothesis"].format(
        latitude=_format_coordinate(location.latitude),
        longitude=_format_coordinate(location.longitude),
    )


def compose_prompts(
    language: Language | str | None,
    extracted_features: str | None = None,
    hypothesis: str | None = None,
    trusted_location: TrustedLocation | None = None,
) -> PromptSet:
    """Build the instructions for each remote phase.

    Unsupported languages fall back to English. With ``trusted_location`` the
    synthesis prompt opens with a preamble pinning the model to those
    coordinates and closes with the verified-coordinates line from
    :func:`describe_trusted_location`; ``hypothesis`` and extracted features
    are not used. Otherwise the hypothesis and extracted features, when known,
    are appended as evidence.
    """
    resolved, templates = _templates(language)
    features_text = (extracted_features or "").strip()

    synthesis_parts: list[str] = []
    if trusted_location is not None:
        synthesis_parts.append(
            templates["trusted_preamble"].format(
                latitude=_format_coordinate(trusted_location.latitude),
                longitude=_format_coordinate(trusted_location.longitude),
            )
        )
    synthesis_parts.append(templates["synthesis"])
    if trusted_location is not None:
        synthesis_parts.append(describe_trusted_location(trusted_location, resolved))
    else:
        if hypothesis and hypothesis.strip():
            synthesis_parts.append(
                templates["hypothesis_block"].format(hypothesis=hypothesis.strip())
            )
        if features_text:
            synthesis_parts.append(templates["features_block"].format(features=features_text))

    return PromptSet(
        language=resolved,
        feature_extraction=templates["feature_extraction"],
        hypothesis=templates["hypothesis"].format(features=features_text or "-"),
        synthesis="\n\n".join(synthesis_parts),
    )
