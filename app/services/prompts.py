"""
Prompt templates for the AI gardener.

System prompts are plain strings; user prompts are Jinja2 templates
filled with the user's habit data.
"""

from jinja2 import Environment, StrictUndefined

_env = Environment(trim_blocks=True, lstrip_blocks=True, undefined=StrictUndefined)

GARDEN_INSIGHTS_SYSTEM_PROMPT = (
    "You are an AI Gardener, a wise and encouraging mentor who helps users cultivate their habits. "
    "You speak in a warm, garden-themed way, using flower and growth metaphors. "
    "Provide specific, actionable advice based on the user's habit data."
)

HABIT_COACHING_SYSTEM_PROMPT = (
    "You are an AI Gardener specializing in individual habit coaching. "
    "Provide specific, actionable advice for this particular habit, using garden metaphors. "
    "Be encouraging but realistic, and offer concrete steps for improvement."
)

WEEKLY_REPORT_SYSTEM_PROMPT = (
    "You are an AI Gardener creating a weekly progress report. "
    "Analyze the user's habit performance over the week, celebrate achievements, "
    "identify areas for improvement, and provide motivation for the coming week. "
    "Use garden metaphors and be encouraging."
)

_GARDEN_INSIGHTS_TEMPLATE = _env.from_string("""\
User: {{ user_name }}
Total Habits: {{ habits | length }}
Active Habits: {{ habits | selectattr("is_active") | list | length }}

Habit Details:
{% for h in habits %}
{{ h.title }} ({{ h.category }}): {{ h.current_streak }} day streak, {{ h.growth_stage }}% growth, {{ h.health_points }}% health
{% endfor %}

Please provide:
1. Overall garden health assessment
2. 2-3 specific insights about their habit patterns
3. 2 actionable recommendations for improvement
4. Encouraging motivation message
""")

_HABIT_COACHING_TEMPLATE = _env.from_string("""\
Habit: {{ habit.title }}
Category: {{ habit.category }}
Frequency: {{ habit.frequency }}
Current Streak: {{ habit.current_streak }} days
Longest Streak: {{ habit.longest_streak }} days
Growth Stage: {{ habit.growth_stage }}%
Health: {{ habit.health_points }}%
Water Level: {{ habit.water_level }}%
Start Date: {{ habit.start_date }}

Please provide:
1. Analysis of this habit's current state
2. 3 specific tips for improvement
3. Motivation to continue
4. Next milestone to aim for
""")

_WEEKLY_REPORT_TEMPLATE = _env.from_string("""\
User: {{ user_name }}
Week ending: {{ week_ending }}

Habit Progress:
{% for h in habits %}
{{ h.title }}: {{ h.current_streak }} day streak, {{ h.growth_stage }}% growth
{% endfor %}

Please provide:
1. Weekly summary and highlights
2. Areas of improvement
3. Celebration of achievements
4. Goals for next week
5. Motivational closing
""")


def format_garden_insights_prompt(user_name: str, habits: list) -> str:
    return _GARDEN_INSIGHTS_TEMPLATE.render(user_name=user_name, habits=habits)


def format_habit_coaching_prompt(habit) -> str:
    return _HABIT_COACHING_TEMPLATE.render(habit=habit)


def format_weekly_report_prompt(user_name: str, habits: list, week_ending: str) -> str:
    return _WEEKLY_REPORT_TEMPLATE.render(user_name=user_name, habits=habits, week_ending=week_ending)
