RECONSTRUCTION_PROMPT = """EVOKI REGELWERK-SEMANTISCHE REKONSTRUKTION

AUFGABE:
Du bist ein KI-Assistent, der darauf spezialisiert ist, ein versioniertes Regelwerk aus einem Chatverlauf zu rekonstruieren.
Analysiere die bereitgestellten Dateiinhalte, um ein vollständiges, strukturiertes JSON-Objekt des Regelwerks zu erstellen.

KONTEXTDATEIEN:

1.  **HAUPTDATEI (Primärquelle):**
    Ein langer Chatverlauf, der die Entwicklung des Regelwerks von Version 1.0 bis 2.8.R dokumentiert.
    ---
{MAIN_CONTENT}
    ---

2.  **SKELETT-FORMAT (Strukturübersicht, falls vorhanden):**
    Eine Liste aller Regeln, aber nur mit oberflächlichen "Was"-Beschreibungen.
    ---
{SKELETON_CONTENT}
    ---

3.  **DICHTES FORMAT (Tiefenbeispiel, falls vorhanden):**
    Einige wenige Regeln, die vollständig mit "Was" (Der exakte Wortlaut), "Warum" (Die Seele), und "Wie" (Die Funktion) beschrieben sind. Dies dient als Musterbeispiel.
    ---
{DENSE_CONTENT}
    ---

4.  **REGEL-INDEX (vorstrukturiert, falls vorhanden):**
    Ein bereits strukturierter Index aller Versionen und Regeln, ggf. nur mit akzeptierten Regeln.
    ---
{INDEX_CONTENT}
    ---

REKONSTRUKTIONSSCHRITTE:

{RECONSTRUCTION_STEPS}

FINALES JSON-FORMAT:
Gib NUR das JSON-Objekt zurück. Das JSON-Objekt soll so strukturiert sein:
{
  "versions": {
    "1.0": {
      "rules": {
        "Regel-1": {
          "was": "Der exakte Wortlaut der Regel.",
          "warum": "Die Absicht oder der Zweck hinter der Regel.",
          "wie": "Die technische oder funktionale Umsetzung der Regel."
        }
      }
    }
  }
}

Alternativ dürfen die drei Felder einer Regel "wortlaut" (statt "was"), "seele" (statt "warum") und "funktion" (statt "wie") heißen.
Verwende innerhalb einer Regel immer genau eine der beiden Schreibweisen und fülle alle drei Felder.

Antworte ausschließlich mit dem finalen, vollständigen JSON-String. Kein einleitender Text, keine Erklärungen, nur der JSON-Code."""


PATTERN_LEARNED_STEPS = """1.  **Muster lernen:** Analysiere das "Dichte Format" (falls vorhanden), um zu verstehen, wie eine vollständige Regel mit "Was", "Warum" und "Wie" strukturiert ist. Lerne die semantische Tiefe und den typischen Sprachstil.

2.  **Struktur extrahieren:** Identifiziere alle Versionen (z.B. "1.0", "1.1", ...) und die dazugehörigen Regeln aus der "HAUPTDATEI" und dem "SKELETT-FORMAT".

3.  **Tiefe ergänzen:** Wende das gelernte Muster auf ALLE Regeln an. Für jede Regel, die nur eine oberflächliche Beschreibung hat, musst du die fehlenden "Warum"- und "Wie"-Teile semantisch sinnvoll aus dem Kontext des gesamten Chatverlaufs ("HAUPTDATEI") rekonstruieren.

4.  **JSON generieren:** Erstelle ein einziges, valides JSON-Objekt, das das gesamte Regelwerk abbildet."""


INDEX_LED_STEPS = """1.  **Index als Gerüst verwenden:** Der "REGEL-INDEX" legt verbindlich fest, welche Versionen und Regeln existieren. Übernimm alle Versions- und Regel-IDs exakt so, wie sie im Index stehen. Erfinde keine zusätzlichen Regeln.

2.  **Muster lernen:** Analysiere das "Dichte Format" (falls vorhanden), um die erwartete semantische Tiefe einer vollständigen Regel zu verstehen.

3.  **Felder ergänzen:** Vervollständige für jede Regel aus dem Index die fehlenden "Was"-, "Warum"- und "Wie"-Teile anhand der "HAUPTDATEI" und des "SKELETT-FORMATS". Bereits vorhandene Inhalte des Index bleiben inhaltlich erhalten.

4.  **JSON generieren:** Erstelle ein einziges, valides JSON-Objekt mit derselben Versions- und Regelstruktur wie der Index."""


MISSING_FRAGMENT_PLACEHOLDER = "Nicht vorhanden."

TRUNCATION_MARKER = "...[gekürzt]"
