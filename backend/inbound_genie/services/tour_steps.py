from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class TourStep:
    id: str
    title: str
    description: str
    target: str
    position: str = "bottom"
    route: str = "/dashboard"

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "target": self.target,
            "position": self.position,
            "route": self.route,
        }


TOUR_STEPS: List[TourStep] = [
    # DASHBOARD
    TourStep(
        id="dashboard-overview",
        title="Welcome to Your Dashboard!",
        description="This is your main command center. Here you'll see an overview of all your activity including total calls, leads generated, active agents, and your current credit balance. The dashboard updates in real-time as your agents make calls.",
        target="[data-tour='dashboard-header']",
        position="bottom",
        route="/dashboard",
    ),
    TourStep(
        id="dashboard-metrics",
        title="Key Performance Metrics",
        description="These four cards show your most important metrics: Total Calls (all calls made), Total Leads (qualified prospects), Active Agents (currently running), and Credits Balance (remaining call time). Click any card to see more details.",
        target="[data-tour='dashboard-metrics']",
        position="top",
        route="/dashboard",
    ),
    TourStep(
        id="dashboard-credits",
        title="Credits & Usage Tracking",
        description="Your credit balance shows how many minutes you have available. Credits are consumed at 1 credit per minute of call time. Click this card to view detailed usage breakdown, see which agents use the most credits, and track your spending over time.",
        target="[data-tour='credits-card']",
        position="top",
        route="/dashboard",
    ),
    TourStep(
        id="dashboard-create-agent",
        title="Create Your First Agent",
        description="Click this button to create your first AI voice agent. You'll configure the agent's name, voice, role (inbound for receiving calls or outbound for making calls), and behavior. Agents can handle conversations naturally using AI.",
        target="[data-tour='create-agent-button']",
        position="bottom",
        route="/dashboard",
    ),
    TourStep(
        id="dashboard-activity",
        title="Recent Activity Feed",
        description="This section shows your latest calls and leads in real-time. You can see call status, duration, and which agent handled each call. Click 'View Full History' to see all calls with advanced filtering and search options.",
        target="[data-tour='recent-activity']",
        position="top",
        route="/dashboard",
    ),
    TourStep(
        id="dashboard-charts",
        title="Performance Analytics",
        description="The charts show your performance trends over the last 7 days. The area chart displays calls vs leads, while the pie chart shows call outcomes (completed, failed, in-progress). Use these to track your success rate and optimize your agents.",
        target="[data-tour='dashboard-charts']",
        position="top",
        route="/dashboard",
    ),

    # AGENTS
    TourStep(
        id="agents-overview",
        title="Manage Your AI Agents",
        description="This is your agent management center. Here you can view all your AI voice agents, see their status (active/inactive), edit their configurations, test them, and monitor their performance. Each agent can handle different types of conversations.",
        target="[data-tour='agents-header']",
        position="bottom",
        route="/bots",
    ),
    TourStep(
        id="agents-stats",
        title="Agent Statistics",
        description="These cards show your agent metrics: Total Agents (all agents you've created), Active Agents (currently running and handling calls), and Inactive Agents (paused or stopped). Keep agents active to handle calls automatically.",
        target="[data-tour='agents-stats']",
        position="top",
        route="/bots",
    ),
    TourStep(
        id="agents-create",
        title="Create a New Agent",
        description="Click this button to create a new agent. You'll configure: Agent Name, Description, Role (Inbound receives calls, Outbound makes calls), Voice Selection, AI Prompt/Instructions, Phone Number Linking, and Advanced Settings like call scheduling and webhooks.",
        target="[data-tour='create-agent-btn']",
        position="bottom",
        route="/bots",
    ),
    TourStep(
        id="agent-editor-overview",
        title="Agent Configuration",
        description="This is the agent editor where you configure all agent settings. Use the tabs to navigate: Details (name, description, role), Voice (select voice and test), Settings (prompt, knowledge base, scheduling), and Logs (view call history for this agent).",
        target="[data-tour='agent-editor-header']",
        position="bottom",
        route="/bots/create",
    ),
    TourStep(
        id="agent-editor-details",
        title="Agent Basic Details",
        description="Set your agent's name and description. Choose the Agent Role: Inbound agents answer incoming calls, Outbound agents make calls to prospects. The role determines how the agent behaves and what features are available.",
        target="[data-tour='agent-details']",
        position="top",
        route="/bots/create",
    ),
    TourStep(
        id="agent-editor-voice",
        title="Voice Selection",
        description="Choose a voice for your agent from our library. You can filter by gender, accent, age, and provider. Click 'Test Voice' to hear how it sounds. The voice you select will be used for all calls made by this agent.",
        target="[data-tour='agent-voice']",
        position="top",
        route="/bots/create",
    ),
    TourStep(
        id="agent-editor-prompt",
        title="AI Prompt & Instructions",
        description="This is where you define what your agent says and how it behaves. Write a detailed prompt explaining the agent's purpose, conversation flow, and how to handle different scenarios. You can also attach a Knowledge Base for the agent to reference during calls.",
        target="[data-tour='agent-prompt']",
        position="top",
        route="/bots/create",
    ),
    TourStep(
        id="agent-editor-phone",
        title="Link Phone Number",
        description="Link a phone number to this agent so it can receive or make calls. Select from your imported phone numbers. Each agent can have one phone number, and each number can only be linked to one agent at a time.",
        target="[data-tour='agent-phone']",
        position="top",
        route="/bots/create",
    ),

    # PHONE NUMBERS
    TourStep(
        id="phone-numbers-overview",
        title="Phone Number Management",
        description="Import and manage your phone numbers here. Phone numbers are required for agents to make or receive calls. You can import numbers from your existing phone service provider and link them to your agents.",
        target="[data-tour='phone-numbers-header']",
        position="bottom",
        route="/phone-numbers",
    ),
    TourStep(
        id="phone-numbers-import",
        title="Import a Phone Number",
        description="To import a number: 1) Enter a name (optional) for easy identification, 2) Enter the phone number in E.164 format (e.g., +14157774444), 3) Enter the termination URI from your provider (e.g., someuri.pstn.twilio.com), 4) Click Import. The number will be available to link to agents.",
        target="[data-tour='import-form']",
        position="top",
        route="/phone-numbers",
    ),
    TourStep(
        id="phone-numbers-list",
        title="Manage Imported Numbers",
        description="View all your imported numbers here. You can see which numbers are linked to agents, unlink them, or delete numbers you no longer need. Click 'Link Agent' to connect a number to an agent, or 'Unlink' to disconnect it.",
        target="[data-tour='phone-numbers-list']",
        position="top",
        route="/phone-numbers",
    ),

    # CALLS
    TourStep(
        id="calls-overview",
        title="Call History & Analytics",
        description="View all your call records in one place. See call status, duration, transcripts, recordings, and detailed metadata. Filter by status, date range, or agent. Export data to CSV for analysis. Click any call to see full details including transcript and recording.",
        target="[data-tour='calls-header']",
        position="bottom",
        route="/calls",
    ),
    TourStep(
        id="calls-stats",
        title="Call Statistics Dashboard",
        description="These cards show your call performance metrics: Total Calls (all time), Completed (successful calls), In Progress (currently active), Failed (unsuccessful), and Pending (scheduled). Use these to track your success rate and identify issues.",
        target="[data-tour='calls-stats']",
        position="top",
        route="/calls",
    ),
    TourStep(
        id="calls-filters",
        title="Filter & Export Calls",
        description="Use the Filters button to filter calls by status (completed, failed, in-progress, etc.). Click 'Export CSV' to download all call data including transcripts, recordings, and metadata for analysis in Excel or other tools.",
        target="[data-tour='calls-filters']",
        position="top",
        route="/calls",
    ),
    TourStep(
        id="calls-table",
        title="Call Details Table",
        description="This table shows all your calls with key information: phone number, contact name, status, duration, agent used, timestamps, and quick access to transcripts and recordings. Click any row to see full call details including the complete conversation transcript.",
        target="[data-tour='calls-table']",
        position="top",
        route="/calls",
    ),

    # LEADS
    TourStep(
        id="leads-overview",
        title="Leads Management",
        description="View and manage all your qualified leads here. Leads come from two sources: 1) Landing page form submissions, and 2) Calls where the agent identified the prospect as a qualified lead. You can contact leads, add notes, and track their status.",
        target="[data-tour='leads-header']",
        position="bottom",
        route="/leads",
    ),
    TourStep(
        id="leads-actions",
        title="Lead Actions",
        description="For each lead, you can: Send Email (contact them directly), View Details (see full information), Mark Status (qualified, contacted, converted), and Add Notes. Leads are automatically created when agents identify prospects during calls.",
        target="[data-tour='leads-actions']",
        position="top",
        route="/leads",
    ),

    # KNOWLEDGE BASES
    TourStep(
        id="knowledge-bases-overview",
        title="Knowledge Bases",
        description="Knowledge Bases provide information to your agents during calls. Upload documents, add text content, or provide URLs. Agents can reference this information to answer questions accurately. Create separate knowledge bases for different topics or products.",
        target="[data-tour='knowledge-bases-header']",
        position="bottom",
        route="/knowledge-bases",
    ),
    TourStep(
        id="knowledge-bases-create",
        title="Create Knowledge Base",
        description="Click 'Create Knowledge Base' to add information for your agents. You can: 1) Upload documents (PDF, TXT, DOCX), 2) Add text content directly, 3) Provide URLs for agents to reference. Enable auto-refresh to keep URLs updated automatically.",
        target="[data-tour='knowledge-bases-create']",
        position="top",
        route="/knowledge-bases",
    ),

    # BILLING
    TourStep(
        id="billing-overview",
        title="Billing & Credits Management",
        description="Manage your account credits, subscriptions, and billing here. Credits are used for making calls (1 credit = 1 minute). You can purchase one-time credit packages or subscribe to monthly plans that include credits. View invoices and payment history.",
        target="[data-tour='billing-header']",
        position="bottom",
        route="/billing",
    ),
    TourStep(
        id="billing-credits",
        title="Credit Balance & Usage",
        description="Your current credit balance shows available minutes. Total Minutes Used shows lifetime usage. Total Credits Used shows all credits consumed. Click 'Add Credits' to purchase more, or view the Plans tab to subscribe to monthly packages.",
        target="[data-tour='credit-balance']",
        position="top",
        route="/billing",
    ),
    TourStep(
        id="billing-plans",
        title="Subscription Plans",
        description="Choose a monthly subscription plan that fits your needs. Plans include monthly credit allocations that reset each month. Starter plans are great for small businesses, while Enterprise plans offer custom pricing for high-volume users. Subscribe to save on credits.",
        target="[data-tour='billing-plans']",
        position="top",
        route="/billing",
    ),
    TourStep(
        id="billing-invoices",
        title="Invoices & Payments",
        description="View all your invoices here. When you subscribe to a plan, an invoice is generated. Complete the payment and mark it as paid to activate your subscription. Invoices show the package, amount, date, and payment status. Download invoices for your records.",
        target="[data-tour='billing-invoices']",
        position="top",
        route="/billing",
    ),
    TourStep(
        id="billing-history",
        title="Purchase History",
        description="See all your credit purchases and subscriptions here. Track when you bought credits, which packages you purchased, prices paid, and credits received. This helps you monitor your spending and plan future purchases.",
        target="[data-tour='billing-history']",
        position="top",
        route="/billing",
    ),

    # SETTINGS
    TourStep(
        id="settings-overview",
        title="Account Settings",
        description="Manage your account settings here. Configure your profile, timezone, security settings (2FA, password), company information, KYC verification, and more. The General tab includes timezone settings and the option to restart this tour.",
        target="[data-tour='settings-header']",
        position="bottom",
        route="/settings",
    ),
]
