EMAIL_REPLY_LENGTHS = {
    "Short": "Keep it brief, 2-3 sentences",
    "Medium": "Moderate length, 1 paragraph",
    "Long": "Detailed response, 2-3 paragraphs",
}

EMAIL_REPLY_PROMPT = """
You are a professional email writing assistant. Generate a {tone_lower} email reply based on the following original email.

Original Email:
{original_email}

Requirements:
- Tone: {tone}
- Length: {length_hint}
- Make it contextual and relevant to the original email
- Include appropriate greeting and sign-off

Generate the email reply:
"""

LINKEDIN_POST_PROMPT = """
You are a professional LinkedIn content creator specializing in tech/dev content. Generate an engaging LinkedIn post for a {experience_level} level developer.

Topic: {topic}
Post Type: {post_type}
Experience Level: {experience_level}

Requirements:
- Post Type Style: {post_type}
- Target Audience: Tech professionals, developers, recruiters
- {hashtags_hint}
- Make it authentic and engaging
- Include a hook/attention grabber
- Include a call-to-action if appropriate
- Keep it professional but conversational
- For {experience_level} level: adjust tone and content accordingly

Generate the LinkedIn post:
"""

PROJECT_IDEAS_PROMPT = """
You are a tech project advisor for students. Generate {count} project ideas with the following specifications:

Technology: {technology}
Difficulty Level: {difficulty_level}
Project Type: {project_type}

For EACH project idea, provide:
1. Project Name (catchy and descriptive)
2. Short Description (2-3 sentences)
3. Key Features (3-5 bullet points)
4. Tech Stack (specific technologies to use)
5. Bonus Feature (optional advanced feature)

Make sure:
- Projects are appropriate for {difficulty_level} level
- Projects use {technology} as the main technology
- Projects are practical and achievable
- Include real-world use cases

Format your response as a structured list with clear headings for each project.
"""

BUSINESS_IDEA_PROMPT = """
You are an expert business analyst. Validate the following business idea with a market analysis specific to {location}.

BUSINESS IDEA: {business_idea}
TARGET LOCATION: {location}
TARGET AUDIENCE: {target_audience}
ESTIMATED BUDGET: {budget}
INDUSTRY TYPE: {industry_type}
REVENUE MODEL: {revenue_model}

Provide a detailed validation report with the following sections:

1. MARKET DEMAND ANALYSIS
2. TARGET CUSTOMER BREAKDOWN
3. COMPETITOR LANDSCAPE
4. ESTIMATED STARTUP COST RANGE
5. LEGAL/REGISTRATION REQUIREMENTS
6. MONETIZATION STRATEGY
7. RISK ASSESSMENT (market, operational, regulatory, with mitigations)
8. SCALABILITY POTENTIAL
9. OVERALL VIABILITY SCORE (1-10) with justification
10. CLEAR RECOMMENDATION (Go/No-Go with key reasons)

Format the response with clear headings and bullet points.
"""

STARTUP_NAMES_PROMPT = """
You are an expert brand strategist and naming expert. Generate {count} creative startup names with the following specifications:

INDUSTRY: {industry}
BRAND PERSONALITY: {brand_personality}
TARGET AUDIENCE: {target_audience}
NAME PREFERENCE: {name_preference}

For EACH name, provide:
1. Startup Name (catchy and memorable)
2. Meaning/Origin (etymology or concept behind the name)
3. Brand Positioning (how the name positions the brand)
4. Tagline Suggestion
5. Domain Style Suggestion (.com, .ai, .io, .co)

Make sure names are unique, memorable, and easy to pronounce and spell.
Consider a {brand_personality_lower} brand personality.

Format as a numbered list with clear sections for each name.
"""

BUSINESS_PLAN_PROMPT = """
You are an expert business consultant and startup advisor. Generate a comprehensive business plan for the following venture:

BUSINESS NAME: {business_name}
INDUSTRY: {industry}
LOCATION: {location}
FUNDING REQUIRED: {funding_required}
TARGET MARKET: {target_market}
REVENUE MODEL: {revenue_model}
BUSINESS DESCRIPTION: {business_description}

Generate a complete business plan with the following sections:

1. EXECUTIVE SUMMARY
2. PROBLEM STATEMENT
3. SOLUTION
4. MARKET OPPORTUNITY (TAM, SAM, SOM)
5. COMPETITIVE ANALYSIS (including SWOT)
6. REVENUE MODEL (with 3-5 year projections)
7. MARKETING STRATEGY
8. OPERATIONAL PLAN
9. FINANCIAL PROJECTION OVERVIEW
10. FUNDING BREAKDOWN
11. CONCLUSION

Format with clear headings, bullet points, and tables where appropriate. Be specific with numbers and timelines.
"""

CHAT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant. Provide clear, accurate, and helpful responses. "
    "When providing code, use proper formatting and explain your reasoning. "
    "Use markdown for formatting when appropriate."
)
