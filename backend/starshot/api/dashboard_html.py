"""Dashboard HTML page (cards, trade tables, Chart.js charts, polling + notification badge)."""

from __future__ import annotations

import json
from typing import List


def get_dashboard_html(*, models: List[str], poll_interval_seconds: int, recent_closed_limit: int) -> str:
    return (
        _TEMPLATE
        .replace("__MODELS__", json.dumps(models))
        .replace("__POLL_MS__", str(int(poll_interval_seconds) * 1000))
        .replace("__RECENT_LIMIT__", str(int(recent_closed_limit)))
    )


_TEMPLATE = '''
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>STARSHOT</title>
    <script src="https://cdn.jsdelivr.net/npm/chart.js@4.4.0/dist/chart.umd.min.js"></script>
    <style>
        :root { --bg: #0f172a; --card: #1e293b; --border: #334155; --text: #f1f5f9; --muted: #94a3b8;
                --accent: #8b5cf6; --green: #22c55e; --red: #f87171; }
        * { box-sizing: border-box; margin: 0; padding: 0; font-family: Inter, system-ui, sans-serif; }
        body { background: var(--bg); color: var(--text); min-height: 100vh; font-size: 14px; }
        header { display: flex; align-items: center; gap: 16px; padding: 12px 24px; border-bottom: 1px solid var(--border);
                 position: sticky; top: 0; background: rgba(15,23,42,0.95); z-index: 10; }
        header h1 { font-size: 22px; letter-spacing: 1px; }
        .tabs { flex: 1; display: flex; justify-content: center; gap: 4px; }
        .tab { padding: 6px 18px; border-radius: 999px; border: 1px solid var(--border); background: transparent;
               color: var(--muted); cursor: pointer; text-transform: uppercase; }
        .tab.active { background: var(--accent); color: #fff; border-color: var(--accent); }
        .bell { position: relative; background: none; border: none; color: var(--text); font-size: 20px; cursor: pointer; }
        .badge { position: absolute; top: -4px; right: -8px; background: var(--accent); border-radius: 999px;
                 font-size: 11px; padding: 1px 6px; display: none; }
        main { padding: 24px; display: grid; gap: 16px; }
        .cards { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 16px; }
        .card { background: var(--card); border: 1px solid var(--border); border-radius: 12px; padding: 16px; }
        .card h3 { font-size: 13px; color: var(--muted); font-weight: 500; margin-bottom: 8px; }
        .card .value { font-size: 24px; font-weight: 700; }
        .card .sub { font-size: 12px; color: var(--muted); margin-top: 4px; }
        .charts { display: grid; grid-template-columns: repeat(auto-fit, minmax(380px, 1fr)); gap: 16px; }
        table { width: 100%; border-collapse: collapse; font-size: 13px; }
        th, td { text-align: left; padding: 8px; border-bottom: 1px solid var(--border); }
        th { color: var(--muted); font-weight: 500; }
        .pos { color: var(--green); } .neg { color: var(--red); }
        .empty { color: var(--muted); padding: 24px; text-align: center; }
        select, .btn { background: var(--bg); color: var(--text); border: 1px solid var(--border); border-radius: 6px; padding: 4px 8px; }
    </style>
</head>
<body>
<header>
    <h1>STARSHOT</h1>
    <div class="tabs" id="tabs"></div>
    <button class="bell" id="bell" title="Notifications">&#128276;<span class="badge" id="badge">0</span></button>
</header>
<main>
    <div class="cards">
        <div class="card"><h3>Total Balance</h3><div class="value" id="c-balance">-</div><div class="sub" id="c-return"></div></div>
        <div class="card"><h3>P&amp;L</h3><div class="value" id="c-pnl">-</div><div class="sub" id="c-biggest"></div></div>
        <div class="card"><h3>Total Trades</h3><div class="value" id="c-trades">-</div><div class="sub" id="c-split"></div></div>
        <div class="card"><h3>Win Rate</h3><div class="value" id="c-winrate">-</div></div>
    </div>
    <div class="charts">
        <div class="card"><h3>Profit / Loss per Trade</h3><canvas id="chart-profit"></canvas></div>
        <div class="card">
            <h3>Cumulative Profit
                <select id="horizon"><option value="">no forecast</option><option>1W</option><option>1M</option><option>3M</option><option>1Y</option></select>
            </h3>
            <canvas id="chart-cumulative"></canvas>
        </div>
    </div>
    <div class="card"><h3>Open Trades</h3><div id="t-open"></div></div>
    <div class="card"><h3>Recent Closed Trades</h3><div id="t-closed"></div></div>
</main>
<script>
const MODELS = __MODELS__;
const POLL_MS = __POLL_MS__;
const RECENT_LIMIT = __RECENT_LIMIT__;

let active = MODELS[0];
const data = {};
const lastTradeCount = {};
let newTrades = 0;
let timer = null;
const charts = {};
const forecasts = {};

const ESCAPES = { "&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#39;" };
const esc = v => String(v ?? "").replace(/[&<>"']/g, c => ESCAPES[c]);

const usd = v => (v ?? 0).toLocaleString('en-US', { style: 'currency', currency: 'USD' });
const pct = v => ((v ?? 0) * 100).toFixed(1) + '%';

function renderTabs() {
    const el = document.getElementById('tabs');
    el.innerHTML = '';
    MODELS.forEach(m => {
        const b = document.createElement('button');
        b.className = 'tab' + (m === active ? ' active' : '');
        b.textContent = m;
        b.onclick = () => { active = m; renderTabs(); render(); if (!forecasts[m]) forecast(); };
        el.appendChild(b);
    });
}

function renderBadge() {
    const badge = document.getElementById('badge');
    badge.textContent = newTrades;
    badge.style.display = newTrades > 0 ? 'inline' : 'none';
}

function tradesTable(trades, closed) {
    if (!trades || trades.length === 0) return '<div class="empty">No trades found.</div>';
    const head = closed
        ? '<tr><th>Asset</th><th>Type</th><th>Open</th><th>Close</th><th>Amount</th><th>Profit</th><th>Closed</th></tr>'
        : '<tr><th>Asset</th><th>Type</th><th>Open</th><th>Amount</th><th>Opened</th></tr>';
    const num = v => Number(v ?? 0);
    const rows = trades.map(t => closed
        ? `<tr><td>${esc(t.asset)}</td><td>${esc(t.type)}</td><td>${num(t.openRate)}</td><td>${num(t.closeRate)}</td><td>${num(t.amount)}</td>` +
          `<td class="${num(t.profitAbs) >= 0 ? 'pos' : 'neg'}">${usd(num(t.profitAbs))} (${num(t.profitPercentage).toFixed(2)}%)</td>` +
          `<td>${esc(new Date(t.closeDate).toLocaleString())}</td></tr>`
        : `<tr><td>${esc(t.asset)}</td><td>${esc(t.type)}</td><td>${num(t.openRate)}</td><td>${num(t.amount)}</td>` +
          `<td>${esc(new Date(t.openDate).toLocaleString())}</td></tr>`).join('');
    return `<table>${head}${rows}</table>`;
}

function drawChart(id, config) {
    if (charts[id]) charts[id].destroy();
    charts[id] = new Chart(document.getElementById(id), config);
}

function render() {
    const d = data[active];
    document.getElementById('c-balance').textContent = d ? usd(d.totalBalance) : 'No data';
    document.getElementById('c-return').textContent = d ? `${(d.percentageProfit ?? 0).toFixed(2)}% return` : '';
    const pnl = document.getElementById('c-pnl');
    pnl.textContent = d ? usd(d.pnl) : 'No data';
    pnl.className = 'value ' + (d && d.pnl < 0 ? 'neg' : 'pos');
    document.getElementById('c-biggest').textContent = d ? `Biggest win ${usd(d.biggestWin)}` : '';
    document.getElementById('c-trades').textContent = d ? d.totalTrades : 'No data';
    document.getElementById('c-split').textContent = d ? `${d.winningTrades} won / ${d.losingTrades} lost` : '';
    document.getElementById('c-winrate').textContent = d ? pct(d.winRate) : 'No data';
    document.getElementById('t-open').innerHTML = tradesTable(d && d.openTrades, false);
    document.getElementById('t-closed').innerHTML = tradesTable(d && d.closedTrades.slice(0, RECENT_LIMIT), true);

    const bars = d ? d.tradeHistoryForCharts : [];
    drawChart('chart-profit', {
        type: 'bar',
        data: { labels: bars.map(p => p.name), datasets: [{ label: 'Profit', data: bars.map(p => p.profit),
                backgroundColor: bars.map(p => p.profit >= 0 ? '#22c55e' : '#f87171') }] },
        options: { plugins: { legend: { display: false } } },
    });

    const cum = d ? d.cumulativeProfitHistory : [];
    const pred = forecasts[active] || [];
    const datasets = [{ label: 'Cumulative Profit', data: cum.map(p => p.cumulativeProfit).concat(pred.map(() => null)),
                        fill: true, borderColor: '#8b5cf6', backgroundColor: 'rgba(139,92,246,0.2)', tension: 0.3 }];
    if (pred.length) {
        datasets.push({ label: 'Forecast', borderDash: [6, 4], borderColor: '#f59e0b', tension: 0.3,
                        data: cum.map((p, i) => i === cum.length - 1 ? p.cumulativeProfit : null).concat(pred.map(p => p.predictedProfit)) });
    }
    drawChart('chart-cumulative', {
        type: 'line',
        data: { labels: cum.map(p => p.date).concat(pred.map(p => p.date)), datasets },
    });
}

async function fetchModel(model) {
    try {
        const resp = await fetch(`/api/trading-data?model=${model}`, { cache: 'no-store' });
        const body = await resp.json();
        if (!resp.ok) throw new Error(body.error || `Failed to fetch data for ${model}`);
        return body;
    } catch (err) {
        console.error(`Error fetching ${model} data:`, err.message);
        return null;
    }
}

async function pollAll() {
    const results = await Promise.all(MODELS.map(fetchModel));
    results.forEach((d, i) => {
        const m = MODELS[i];
        data[m] = d;
        if (!d) return;
        const prev = lastTradeCount[m];
        if (prev !== undefined && d.totalTrades > prev) newTrades += d.totalTrades - prev;
        lastTradeCount[m] = d.totalTrades;
    });
    renderBadge();
    render();
}

// Predictions are kept per model until the horizon changes, so polls and tab switches redraw them.
async function forecast() {
    const horizon = document.getElementById('horizon').value;
    const model = active;
    const d = data[model];
    if (!horizon || !d) return render();
    const history = d.cumulativeProfitHistory.map(p => ({ date: p.date, cumulativeProfit: p.cumulativeProfit }));
    try {
        const resp = await fetch('/api/profit-forecast', {
            method: 'POST', headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify({ history, duration: horizon }),
        });
        const body = await resp.json();
        if (!resp.ok) throw new Error(body.error || 'forecast failed');
        if (document.getElementById('horizon').value === horizon) forecasts[model] = body.prediction;
    } catch (err) {
        console.error('Forecast error:', err.message);
    }
    render();
}

function onHorizonChange() {
    Object.keys(forecasts).forEach(m => delete forecasts[m]);
    forecast();
}

function start() { if (!timer) { pollAll(); timer = setInterval(pollAll, POLL_MS); } }
function stop() { if (timer) { clearInterval(timer); timer = null; } }

document.addEventListener('visibilitychange', () => document.hidden ? stop() : start());
document.getElementById('bell').onclick = () => { newTrades = 0; renderBadge(); };
document.getElementById('horizon').onchange = onHorizonChange;

renderTabs();
renderBadge();
if (!document.hidden) start();
</script>
</body>
</html>
'''
