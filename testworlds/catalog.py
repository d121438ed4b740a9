"""
Compiled-in catalog of test worlds.

Content paths are relative to fixtures/<world directory>/.
"""

from __future__ import annotations

from testworlds.models.world import (
    WorldArtifact,
    WorldChat,
    WorldDefinition,
    WorldFeatures,
    WorldSettings,
    WorldUser,
)

CLEAN_USER_WORKSPACE = WorldDefinition(
    id="CLEAN_USER_WORKSPACE",
    name="Clean user workspace",
    description="Signed-in user with an empty chat and a couple of base artifacts for AI generation",
    fixture_dir="base",
    users=[
        WorldUser(test_id="user-sarah", name="Sarah Wilson", email="sarah@example.com", role="hr-manager"),
    ],
    artifacts=[
        WorldArtifact(
            test_id="artifact-base-contacts",
            title="Base HR contacts",
            kind="sheet",
            owner_id="user-sarah",
            content_path="hr-contacts.csv",
            tags=("hr", "contacts", "template"),
        ),
        WorldArtifact(
            test_id="artifact-base-links",
            title="Useful links",
            kind="text",
            owner_id="user-sarah",
            content_path="useful-links.md",
            tags=("links", "onboarding", "template"),
        ),
    ],
    settings=WorldSettings(
        include_site_blocks=True,
        features=WorldFeatures(enable_ai_fixtures=True, enable_clipboard=True),
    ),
)

SITE_READY_FOR_PUBLICATION = WorldDefinition(
    id="SITE_READY_FOR_PUBLICATION",
    name="Site ready for publication",
    description="A complete site artifact for exercising the publication workflow",
    fixture_dir="publication",
    users=[
        WorldUser(test_id="user-ada", name="Ada Thompson", email="ada@example.com", role="hr-manager"),
    ],
    artifacts=[
        WorldArtifact(
            test_id="site-developer-onboarding",
            title="Developer onboarding",
            kind="site",
            owner_id="user-ada",
            content_path="developer-site-complete.json",
            tags=("site", "developer", "onboarding", "ready"),
        ),
        WorldArtifact(
            test_id="artifact-welcome-text",
            title="Welcome from the CEO",
            kind="text",
            owner_id="user-ada",
            content_path="ceo-welcome.md",
            tags=("welcome", "ceo", "text"),
        ),
        WorldArtifact(
            test_id="artifact-dev-contacts",
            title="Engineering team contacts",
            kind="sheet",
            owner_id="user-ada",
            content_path="dev-team-contacts.csv",
            tags=("contacts", "development", "team"),
        ),
    ],
    settings=WorldSettings(
        include_site_blocks=True,
        ttl_minutes=60,
        features=WorldFeatures(enable_publication=True),
    ),
)

CONTENT_LIBRARY_BASE = WorldDefinition(
    id="CONTENT_LIBRARY_BASE",
    name="Content library",
    description="Many ready-made artifacts for clipboard and reuse workflows",
    fixture_dir="library",
    users=[
        WorldUser(test_id="user-maria", name="Maria Garcia", email="maria@example.com", role="hr-manager"),
    ],
    artifacts=[
        WorldArtifact(
            test_id="artifact-ceo-welcome",
            title="Welcome from the CEO",
            kind="text",
            owner_id="user-maria",
            content_path="ceo-welcome-reusable.md",
            tags=("welcome", "ceo", "reusable", "template"),
        ),
        WorldArtifact(
            test_id="artifact-hr-contacts",
            title="HR contacts",
            kind="sheet",
            owner_id="user-maria",
            content_path="hr-contacts-standard.csv",
            tags=("hr", "contacts", "standard"),
        ),
        WorldArtifact(
            test_id="artifact-useful-links",
            title="Useful links",
            kind="text",
            owner_id="user-maria",
            content_path="useful-links-comprehensive.md",
            tags=("links", "resources", "comprehensive"),
        ),
        WorldArtifact(
            test_id="site-empty-template",
            title="Empty site template",
            kind="site",
            owner_id="user-maria",
            content_path="empty-site-template.json",
            tags=("site", "template", "empty"),
        ),
    ],
    settings=WorldSettings(
        include_site_blocks=True,
        features=WorldFeatures(enable_clipboard=True, enable_ai_fixtures=True),
    ),
)

DEMO_PREPARATION = WorldDefinition(
    id="DEMO_PREPARATION",
    name="Demo preparation",
    description="A finished chat that built an onboarding site, ready to show colleagues",
    fixture_dir="demo",
    users=[
        WorldUser(test_id="user-david", name="David Chen", email="david@example.com", role="hr-manager"),
    ],
    artifacts=[
        WorldArtifact(
            test_id="site-demo-complete",
            title="Onboarding demo site",
            kind="site",
            owner_id="user-david",
            content_path="complete-demo-site.json",
            tags=("demo", "complete", "showcase"),
        ),
        WorldArtifact(
            test_id="artifact-demo-welcome-message",
            title="Welcome message for a new hire",
            kind="text",
            owner_id="user-david",
            content_path="demo-welcome-message.md",
            tags=("welcome", "demo", "onboarding"),
        ),
        WorldArtifact(
            test_id="artifact-demo-contacts",
            title="Team contacts",
            kind="sheet",
            owner_id="user-david",
            content_path="demo-contacts.csv",
            tags=("contacts", "demo", "team"),
        ),
    ],
    chats=[
        WorldChat(
            test_id="chat-demo-workflow",
            title="Building a site with AI",
            owner_id="user-david",
            messages_path="ai-site-creation-chat.json",
        ),
    ],
    settings=WorldSettings(
        include_site_blocks=True,
        ttl_minutes=180,
        features=WorldFeatures(enable_publication=True),
    ),
)

ENTERPRISE_ONBOARDING = WorldDefinition(
    id="ENTERPRISE_ONBOARDING",
    name="Enterprise onboarding",
    description="Enterprise setup with role templates for multi-artifact creation",
    fixture_dir="enterprise",
    users=[
        WorldUser(test_id="user-elena", name="Elena Rodriguez", email="elena@example.com", role="admin"),
    ],
    artifacts=[
        WorldArtifact(
            test_id="template-tech-lead",
            title="Technical lead template",
            kind="text",
            owner_id="user-elena",
            content_path="tech-lead-template.md",
            tags=("template", "tech-lead", "enterprise"),
        ),
        WorldArtifact(
            test_id="contacts-dev-team",
            title="Engineering team",
            kind="sheet",
            owner_id="user-elena",
            content_path="dev-team-contacts.csv",
            tags=("contacts", "development", "enterprise"),
        ),
        WorldArtifact(
            test_id="docs-tech-stack",
            title="Technology stack",
            kind="text",
            owner_id="user-elena",
            content_path="tech-stack-docs.md",
            tags=("documentation", "tech-stack", "enterprise"),
        ),
    ],
    dependencies=("CLEAN_USER_WORKSPACE",),
    settings=WorldSettings(
        include_site_blocks=True,
        features=WorldFeatures(enable_ai_fixtures=True, enable_publication=True, enable_clipboard=True),
    ),
)

WORLDS: dict[str, WorldDefinition] = {
    world.id: world
    for world in (
        CLEAN_USER_WORKSPACE,
        SITE_READY_FOR_PUBLICATION,
        CONTENT_LIBRARY_BASE,
        DEMO_PREPARATION,
        ENTERPRISE_ONBOARDING,
    )
}
